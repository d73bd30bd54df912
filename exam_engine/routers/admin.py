"""Admin routes for loading exams into the catalog and reading attempts."""

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from exam_engine.catalog import add_question, create_exam, set_published
from exam_engine.database import get_session
from exam_engine.deps import Principal, get_lifecycle, require_role
from exam_engine.errors import NotFoundError
from exam_engine.lifecycle import AttemptLifecycle
from exam_engine.models import Exam
from exam_engine.schemas import CreateExamIn, CreateQuestionIn

router = APIRouter()


def _exam_out(exam: Exam) -> dict:
    return {
        "id": exam.id,
        "title": exam.title,
        "description": exam.description,
        "duration_minutes": exam.duration_minutes,
        "start_at": exam.start_at,
        "end_at": exam.end_at,
        "is_published": exam.is_published,
    }


@router.post("/exams", status_code=201)
def api_create_exam(
    payload: CreateExamIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Principal = Depends(require_role(["admin"])),
):
    exam = create_exam(
        session,
        title=payload.title,
        duration_minutes=payload.duration_minutes,
        description=payload.description,
        start_at=payload.start_at,
        end_at=payload.end_at,
        is_published=payload.is_published,
        questions=[q.model_dump() for q in payload.questions],
    )
    return {"exam": _exam_out(exam)}


@router.post("/exams/{exam_id}/questions", status_code=201)
def api_add_question(
    exam_id: int,
    payload: CreateQuestionIn = Body(...),
    session: Session = Depends(get_session),
    current_user: Principal = Depends(require_role(["admin"])),
):
    q = add_question(session, exam_id, **payload.model_dump())
    return {
        "question_id": q.id,
        "exam_id": q.exam_id,
        "question_type": q.question_type,
        "marks": q.marks,
        "position": q.position,
    }


@router.post("/exams/{exam_id}/publish")
def api_publish(
    exam_id: int,
    session: Session = Depends(get_session),
    current_user: Principal = Depends(require_role(["admin"])),
):
    return {"exam": _exam_out(set_published(session, exam_id, True))}


@router.post("/exams/{exam_id}/unpublish")
def api_unpublish(
    exam_id: int,
    session: Session = Depends(get_session),
    current_user: Principal = Depends(require_role(["admin"])),
):
    return {"exam": _exam_out(set_published(session, exam_id, False))}


@router.get("/exams/{exam_id}/attempts")
def api_exam_attempts(
    exam_id: int,
    session: Session = Depends(get_session),
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["admin"])),
):
    if session.get(Exam, exam_id) is None:
        raise NotFoundError("Exam not found")
    return {"attempts": lifecycle.exam_attempts(exam_id)}


@router.get("/attempts/{attempt_id}/result")
def api_attempt_result(
    attempt_id: int,
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["admin"])),
):
    return {"result": lifecycle.get_result(attempt_id, current_user.id, is_admin=True).to_dict()}
