"""Read access to exams and their questions, plus the authoring helpers
used to populate them."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import Session, select

from exam_engine.errors import BadRequestError, NotFoundError
from exam_engine.models import Attempt, Exam, Question, as_naive_utc, utcnow
from exam_engine.questions import QuestionVariant, build_question_row, from_row
from exam_engine.utils import sanitize_plain

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 150
DESCRIPTION_MAX_LENGTH = 1000
DURATION_MIN_MINUTES = 5
DURATION_MAX_MINUTES = 300


@dataclass(frozen=True)
class ExamSnapshot:
    """Exam metadata and its position-ordered questions, read at one instant."""

    exam_id: int
    title: str
    description: str
    duration_minutes: int
    start_at: Optional[datetime]
    end_at: Optional[datetime]
    is_published: bool
    questions: tuple[QuestionVariant, ...]

    @property
    def total_marks(self) -> int:
        return sum(q.marks for q in self.questions)

    def is_active(self, now: datetime) -> bool:
        return window_is_open(self.start_at, self.end_at, now)


def window_is_open(start_at: Optional[datetime], end_at: Optional[datetime], now: datetime) -> bool:
    """True when ``now`` lies in ``[start_at, end_at]``; None bounds are open."""
    has_started = start_at is None or start_at <= now
    has_not_ended = end_at is None or now <= end_at
    return has_started and has_not_ended


def is_active(exam: Exam, now: datetime) -> bool:
    return window_is_open(exam.start_at, exam.end_at, now)


def list_question_rows(session: Session, exam_id: int) -> List[Question]:
    stmt = select(Question).where(Question.exam_id == exam_id).order_by(Question.position)
    return list(session.exec(stmt).all())


def get_snapshot(session: Session, exam_id: int) -> Optional[ExamSnapshot]:
    exam = session.get(Exam, exam_id)
    if exam is None:
        return None
    return ExamSnapshot(
        exam_id=exam.id,
        title=exam.title,
        description=exam.description,
        duration_minutes=exam.duration_minutes,
        start_at=exam.start_at,
        end_at=exam.end_at,
        is_published=exam.is_published,
        questions=tuple(from_row(row) for row in list_question_rows(session, exam_id)),
    )


def list_available_exams(session: Session, student_id: int, now: Optional[datetime] = None) -> List[dict[str, Any]]:
    """Published exams with the student's attempt state for each."""
    now = now or utcnow()
    stmt = (
        select(
            Exam,
            func.count(Question.id),
            func.coalesce(func.sum(Question.marks), 0),
        )
        .join(Question, Question.exam_id == Exam.id, isouter=True)
        .where(Exam.is_published == True)  # noqa: E712
        .group_by(Exam.id)
        .order_by(Exam.start_at.is_(None), Exam.start_at, Exam.created_at.desc())
    )
    rows = session.exec(stmt).all()

    attempts = {
        a.exam_id: a
        for a in session.exec(select(Attempt).where(Attempt.student_id == student_id)).all()
    }

    exams = []
    for exam, question_count, total_marks in rows:
        attempt = attempts.get(exam.id)
        exams.append(
            {
                "id": exam.id,
                "title": exam.title,
                "description": exam.description,
                "duration_minutes": exam.duration_minutes,
                "start_at": exam.start_at,
                "end_at": exam.end_at,
                "total_questions": question_count,
                "total_marks": int(total_marks),
                "active": is_active(exam, now),
                "attempt_status": attempt.status if attempt else None,
                "attempted": bool(attempt and attempt.submitted_at),
                "score": attempt.score if attempt and attempt.submitted_at else None,
            }
        )
    return exams


# --- Authoring ---


def _validate_exam_fields(title: str, description: str, duration_minutes: int,
                          start_at: Optional[datetime], end_at: Optional[datetime]) -> dict[str, str]:
    errors: dict[str, str] = {}
    if not (TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH):
        errors["title"] = f"Title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters."
    if len(description) > DESCRIPTION_MAX_LENGTH:
        errors["description"] = f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters."
    if not (DURATION_MIN_MINUTES <= duration_minutes <= DURATION_MAX_MINUTES):
        errors["duration_minutes"] = (
            f"Duration must be between {DURATION_MIN_MINUTES} and {DURATION_MAX_MINUTES} minutes."
        )
    if start_at and end_at and end_at < start_at:
        errors["end_at"] = "End time must not be before start time."
    return errors


def create_exam(
    session: Session,
    title: str,
    duration_minutes: int,
    description: str = "",
    start_at: Optional[datetime] = None,
    end_at: Optional[datetime] = None,
    is_published: bool = False,
    questions: Sequence[dict] = (),
) -> Exam:
    """Create an exam and, optionally, its questions in one commit.

    Every question is validated before anything is written, so a bad question
    leaves no half-built exam behind.
    """
    title_clean = sanitize_plain(title)
    description_clean = sanitize_plain(description)
    start_at, end_at = as_naive_utc(start_at), as_naive_utc(end_at)
    errors = _validate_exam_fields(title_clean, description_clean, duration_minutes, start_at, end_at)
    if errors:
        raise BadRequestError("; ".join(f"{k}: {v}" for k, v in errors.items()))
    if is_published and not questions:
        raise BadRequestError("An exam needs at least one question before it can be published.")

    rows = [
        build_question_row(exam_id=0, position=position, **question)
        for position, question in enumerate(questions, start=1)
    ]

    exam = Exam(
        title=title_clean,
        description=description_clean,
        duration_minutes=duration_minutes,
        start_at=start_at,
        end_at=end_at,
        is_published=is_published,
    )
    session.add(exam)
    session.flush()
    for row in rows:
        row.exam_id = exam.id
        session.add(row)
    session.commit()
    session.refresh(exam)
    logger.info("Created exam %s (%r) with %s questions", exam.id, exam.title, len(rows))
    return exam



def _get_exam(session: Session, exam_id: int) -> Exam:
    exam = session.get(Exam, exam_id)
    if exam is None:
        raise NotFoundError("Exam not found")
    return exam


def add_question(
    session: Session,
    exam_id: int,
    prompt: str,
    question_type: str = "single_choice",
    options: Optional[Sequence[str]] = None,
    correct_option: Optional[str] = None,
    audio_url: Optional[str] = None,
    match_pairs: Optional[Sequence[dict]] = None,
    marks: int = 1,
) -> Question:
    """Append a question to an exam; positions stay 1-based and contiguous."""
    exam = _get_exam(session, exam_id)

    last_position = session.exec(
        select(func.max(Question.position)).where(Question.exam_id == exam_id)
    ).one()
    row = build_question_row(
        exam_id=exam.id,
        position=(last_position or 0) + 1,
        prompt=prompt,
        question_type=question_type,
        options=options,
        correct_option=correct_option,
        audio_url=audio_url,
        match_pairs=match_pairs,
        marks=marks,
    )
    exam.updated_at = utcnow()
    session.add(exam)
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


def set_published(session: Session, exam_id: int, published: bool) -> Exam:
    exam = _get_exam(session, exam_id)
    if published and not list_question_rows(session, exam_id):
        raise BadRequestError("An exam needs at least one question before it can be published.")
    exam.is_published = published
    exam.updated_at = utcnow()
    session.add(exam)
    session.commit()
    session.refresh(exam)
    logger.info("Exam %s published=%s", exam_id, published)
    return exam
