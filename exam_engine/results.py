"""Score aggregation and the canonical result summary of an attempt."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from exam_engine.models import Attempt
from exam_engine.scoring import GradedAnswer
from exam_engine.store import AttemptStore


@dataclass(frozen=True)
class Tally:
    score: int
    total_marks: int
    correct_answers: int
    total_questions: int


@dataclass(frozen=True)
class AttemptResult:
    attempt_id: int
    exam_id: int
    score: int
    total_marks: int
    percentage: float
    correct_answers: int
    total_questions: int
    submitted_at: Optional[datetime]
    time_taken_seconds: Optional[int]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.submitted_at is not None:
            data["submitted_at"] = self.submitted_at.isoformat()
        return data


def percentage(score: int, total_marks: int) -> float:
    """Score as a percentage rounded to 2 dp; 0 when there is nothing to score."""
    if total_marks <= 0:
        return 0.0
    return round(score / total_marks * 100, 2)


def aggregate(graded: Iterable[GradedAnswer], marks_by_question: dict[int, int]) -> Tally:
    """Sum awarded marks; the total comes from the question set, not the answers."""
    graded = list(graded)
    return Tally(
        score=sum(g.marks_awarded for g in graded),
        total_marks=sum(marks_by_question.values()),
        correct_answers=sum(1 for g in graded if g.is_correct),
        total_questions=len(marks_by_question),
    )


def commit_submission(
    store: AttemptStore,
    attempt_id: int,
    graded: list[GradedAnswer],
    tally: Tally,
    time_taken_seconds: int,
) -> None:
    """Write graded answers and the attempt's terminal fields, then commit.

    The caller must already hold the submission claim in this transaction and
    is responsible for rolling back if this raises.
    """
    store.record_answers(attempt_id, graded)
    store.finalise(attempt_id, tally.score, tally.total_marks, time_taken_seconds)
    store.session.commit()


def summarize(store: AttemptStore, attempt: Attempt) -> AttemptResult:
    """Re-derive the result summary from the stored attempt and answers."""
    answers = store.answers_for(attempt.id)
    return AttemptResult(
        attempt_id=attempt.id,
        exam_id=attempt.exam_id,
        score=attempt.score,
        total_marks=attempt.total_marks,
        percentage=percentage(attempt.score, attempt.total_marks),
        correct_answers=sum(1 for a in answers if a.is_correct),
        total_questions=len(answers),
        submitted_at=attempt.submitted_at,
        time_taken_seconds=attempt.time_taken_seconds,
    )
