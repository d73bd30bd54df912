"""Student-facing routes: available exams, taking an exam, and results."""

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from exam_engine.catalog import list_available_exams
from exam_engine.database import get_session
from exam_engine.deps import Principal, get_lifecycle, require_role
from exam_engine.lifecycle import AttemptLifecycle
from exam_engine.schemas import SubmitPayload

router = APIRouter()


@router.get("/exams")
def available_exams(
    session: Session = Depends(get_session),
    current_user: Principal = Depends(require_role(["student"])),
):
    """Published exams with this student's attempt state."""
    return {"exams": list_available_exams(session, current_user.id)}


@router.post("/exams/{exam_id}/start")
def start_exam(
    exam_id: int,
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["student"])),
):
    """Start a new attempt or resume the in-progress one."""
    started = lifecycle.start(exam_id, current_user.id)
    return started.to_dict()


@router.post("/attempts/{attempt_id}/submit")
def submit_attempt(
    attempt_id: int,
    payload: SubmitPayload = Body(...),
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["student"])),
):
    answers = [a.model_dump() for a in payload.answers]
    result = lifecycle.submit(attempt_id, current_user.id, answers)
    return {"message": "Exam submitted successfully.", "result": result.to_dict()}


@router.get("/attempts/{attempt_id}/result")
def attempt_result(
    attempt_id: int,
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["student"])),
):
    return {"result": lifecycle.get_result(attempt_id, current_user.id).to_dict()}


@router.get("/history")
def attempt_history(
    lifecycle: AttemptLifecycle = Depends(get_lifecycle),
    current_user: Principal = Depends(require_role(["student"])),
):
    """Most recent submitted attempts, newest first."""
    return {"history": [r.to_dict() for r in lifecycle.history(current_user.id)]}
