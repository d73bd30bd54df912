"""Attempt lifecycle: starting, resuming and submitting exam attempts.

An attempt is created on first start and becomes submitted exactly once.
There is no server-side timer: the duration is advisory, clients submit
when their countdown ends, and a late submission is still accepted with its
real elapsed time recorded.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from exam_engine.catalog import ExamSnapshot, get_snapshot
from exam_engine.errors import (
    BadRequestError,
    ConflictError,
    ExamEngineError,
    ExamNotActiveError,
    ForbiddenError,
    NotFoundError,
    SubmissionFailedError,
)
from exam_engine.models import Attempt, AttemptStatus, utcnow
from exam_engine.questions import public_view
from exam_engine.results import AttemptResult, aggregate, commit_submission, percentage, summarize
from exam_engine.scoring import grade_all
from exam_engine.store import AttemptStore, DuplicateAttemptError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StartedAttempt:
    attempt_id: int
    started_at: datetime
    resumed: bool
    exam: ExamSnapshot

    @property
    def deadline_at(self) -> datetime:
        """Advisory end of the attempt; not enforced on submission."""
        return self.started_at + timedelta(minutes=self.exam.duration_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempt_id": self.attempt_id,
            "started_at": self.started_at.isoformat(),
            "deadline_at": self.deadline_at.isoformat(),
            "resumed": self.resumed,
            "exam": {
                "id": self.exam.exam_id,
                "title": self.exam.title,
                "description": self.exam.description,
                "duration_minutes": self.exam.duration_minutes,
                "total_marks": self.exam.total_marks,
                "questions": [public_view(q) for q in self.exam.questions],
            },
        }


def index_answers(answers: Iterable[Mapping[str, Any]]) -> dict[int, Mapping[str, Any]]:
    """Key submitted answers by question id; a later entry for the same id wins."""
    indexed: dict[int, Mapping[str, Any]] = {}
    for entry in answers or []:
        if not isinstance(entry, Mapping):
            continue
        qid = entry.get("question_id")
        if isinstance(qid, int) and not isinstance(qid, bool):
            indexed[qid] = entry
    return indexed


class AttemptLifecycle:
    """Start/submit controller bound to one session and its attempt store."""

    def __init__(
        self,
        session: Session,
        store: Optional[AttemptStore] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.store = store or AttemptStore(session)
        self.clock = clock

    def _already_submitted(self, attempt: Attempt) -> ConflictError:
        result = summarize(self.store, attempt)
        return ConflictError("You have already submitted this exam.", result=result.to_dict())

    def start(self, exam_id: int, student_id: int, now: Optional[datetime] = None) -> StartedAttempt:
        now = now or self.clock()

        snapshot = get_snapshot(self.session, exam_id)
        # drafts and missing exams look the same to students
        if snapshot is None or not snapshot.is_published:
            raise NotFoundError("Exam not found or not available.")
        if not snapshot.is_active(now):
            raise ExamNotActiveError("Exam is not active at this time.")

        attempt = self.store.find_for(exam_id, student_id)
        resumed = attempt is not None
        if attempt is None:
            try:
                attempt = self.store.create(exam_id, student_id, now)
                logger.info("Student %s started exam %s (attempt %s)", student_id, exam_id, attempt.id)
            except DuplicateAttemptError:
                # lost the race: the winner's row is the attempt to resume
                attempt = self.store.find_for(exam_id, student_id)
                if attempt is None:
                    raise
                resumed = True

        if attempt.attempt_status.is_terminal or attempt.submitted_at is not None:
            raise self._already_submitted(attempt)

        if resumed:
            logger.info("Student %s resumed attempt %s", student_id, attempt.id)
        return StartedAttempt(
            attempt_id=attempt.id,
            started_at=attempt.started_at,
            resumed=resumed,
            exam=snapshot,
        )

    def submit(
        self,
        attempt_id: int,
        caller_id: int,
        answers: Iterable[Mapping[str, Any]],
        now: Optional[datetime] = None,
    ) -> AttemptResult:
        """Grade and finalise an attempt in a single transaction."""
        now = now or self.clock()

        attempt = self.store.get(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt not found.")
        if attempt.student_id != caller_id:
            raise ForbiddenError("You can submit only your own attempt.")
        if attempt.submitted_at is not None or not attempt.attempt_status.can_transition_to(
            AttemptStatus.SUBMITTED
        ):
            raise ConflictError("This attempt was already submitted.")

        exam_id = attempt.exam_id
        started_at = attempt.started_at
        answer_map = index_answers(answers)

        try:
            if not self.store.claim_submission(attempt_id, now):
                self.session.rollback()
                raise ConflictError("This attempt was already submitted.")

            # answer keys are read after the claim, inside the same transaction
            snapshot = get_snapshot(self.session, exam_id)
            if snapshot is None or not snapshot.questions:
                self.session.rollback()
                raise BadRequestError("Exam has no questions.")

            questions = list(snapshot.questions)
            graded = grade_all(questions, answer_map)
            tally = aggregate(graded, {q.question_id: q.marks for q in questions})
            time_taken = max(0, math.floor((now - started_at).total_seconds()))

            commit_submission(self.store, attempt_id, graded, tally, time_taken)
        except ExamEngineError:
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Submission of attempt %s failed; rolled back", attempt_id)
            raise SubmissionFailedError("Failed to submit attempt.") from exc
        except Exception:
            self.session.rollback()
            logger.exception("Submission of attempt %s failed; rolled back", attempt_id)
            raise

        if time_taken > snapshot.duration_minutes * 60:
            logger.warning(
                "Attempt %s submitted after %ss, exceeding the %s minute duration",
                attempt_id,
                time_taken,
                snapshot.duration_minutes,
            )
        logger.info("Attempt %s submitted: %s/%s", attempt_id, tally.score, tally.total_marks)

        return AttemptResult(
            attempt_id=attempt_id,
            exam_id=exam_id,
            score=tally.score,
            total_marks=tally.total_marks,
            percentage=percentage(tally.score, tally.total_marks),
            correct_answers=tally.correct_answers,
            total_questions=tally.total_questions,
            submitted_at=now,
            time_taken_seconds=time_taken,
        )

    def get_result(self, attempt_id: int, caller_id: int, is_admin: bool = False) -> AttemptResult:
        attempt = self.store.get(attempt_id)
        if attempt is None:
            raise NotFoundError("Attempt not found.")
        if attempt.student_id != caller_id and not is_admin:
            raise ForbiddenError("You can view only your own results.")
        if not attempt.attempt_status.is_terminal:
            raise ConflictError("This attempt has not been submitted yet.")
        return summarize(self.store, attempt)

    def history(self, student_id: int, limit: int = 20) -> List[AttemptResult]:
        return [summarize(self.store, a) for a in self.store.list_submitted_for_student(student_id, limit)]

    def exam_attempts(self, exam_id: int) -> List[dict[str, Any]]:
        """Every attempt on an exam, submitted ones with their summary."""
        rows = []
        for attempt in self.store.list_for_exam(exam_id):
            entry: dict[str, Any] = {
                "attempt_id": attempt.id,
                "student_id": attempt.student_id,
                "status": attempt.status,
                "started_at": attempt.started_at.isoformat(),
            }
            if attempt.attempt_status.is_terminal:
                entry["result"] = summarize(self.store, attempt).to_dict()
            rows.append(entry)
        return rows
