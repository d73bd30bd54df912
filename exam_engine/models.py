"""SQLModel tables for exams, questions, attempts and graded answers."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column, DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# every datetime column stores naive UTC
NAIVE_DATETIME = DateTime(timezone=False)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class QuestionType(str, enum.Enum):
    SINGLE_CHOICE = "single_choice"
    AUDIO_SINGLE_CHOICE = "audio_single_choice"
    MATCHING = "matching"


class AttemptStatus(str, enum.Enum):
    """Persisted attempt states. "Not started" is the absence of a row."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"

    @property
    def is_terminal(self) -> bool:
        return self is AttemptStatus.SUBMITTED

    def can_transition_to(self, target: "AttemptStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS = {
    AttemptStatus.IN_PROGRESS: frozenset({AttemptStatus.SUBMITTED}),
    AttemptStatus.SUBMITTED: frozenset(),
}


class Exam(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = ""
    duration_minutes: int
    # either bound may be None, meaning unbounded on that side
    start_at: Optional[datetime] = Field(default=None, sa_type=NAIVE_DATETIME)
    end_at: Optional[datetime] = Field(default=None, sa_type=NAIVE_DATETIME)
    is_published: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)


class Question(SQLModel, table=True):
    """One question of an exam.

    Only the fields of the row's ``question_type`` are meaningful: choice
    types use the options and ``correct_option`` (plus ``audio_url`` for the
    audio variant); matching uses ``match_pairs``. The rest stay empty.
    """

    __table_args__ = (
        UniqueConstraint("exam_id", "position", name="uq_question_exam_position"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exam.id", ondelete="CASCADE", index=True)
    prompt: str
    question_type: str = Field(default=QuestionType.SINGLE_CHOICE.value)
    option_a: str = ""
    option_b: str = ""
    option_c: str = ""
    option_d: str = ""
    correct_option: Optional[str] = None
    audio_url: Optional[str] = None
    # list of {"left": str, "right": str}; list order is the answer key
    match_pairs: Optional[list] = Field(default=None, sa_column=Column(JSON))
    marks: int = Field(default=1)
    position: int


class Attempt(SQLModel, table=True):
    """One student's single attempt at one exam."""

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_attempt_exam_student"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_id: int = Field(foreign_key="exam.id", ondelete="CASCADE", index=True)
    # identities come from the external identity provider
    student_id: int = Field(index=True)
    status: str = Field(default=AttemptStatus.IN_PROGRESS.value)
    started_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE_DATETIME)
    submitted_at: Optional[datetime] = Field(default=None, sa_type=NAIVE_DATETIME)
    score: int = Field(default=0)
    total_marks: int = Field(default=0)
    time_taken_seconds: Optional[int] = None

    @property
    def attempt_status(self) -> AttemptStatus:
        return AttemptStatus(self.status)


class AttemptAnswer(SQLModel, table=True):
    """Graded response to one question; written once at submission."""

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answer_attempt_question"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    attempt_id: int = Field(foreign_key="attempt.id", ondelete="CASCADE", index=True)
    question_id: int = Field(foreign_key="question.id", ondelete="CASCADE")
    selected_option: Optional[str] = None
    matching_pairs: Optional[list] = Field(default=None, sa_column=Column(JSON))
    is_correct: bool = Field(default=False)
    marks_awarded: int = Field(default=0)
