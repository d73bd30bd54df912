"""Persistence of attempts and their graded answers.

``AttemptStore`` wraps a caller-owned ``Session``; it never commits on its
own except in ``create``, whose commit is what makes the (exam, student)
uniqueness constraint arbitrate racing starts.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from exam_engine.models import Attempt, AttemptAnswer, AttemptStatus
from exam_engine.scoring import GradedAnswer

logger = logging.getLogger(__name__)


class DuplicateAttemptError(Exception):
    """Another request created the attempt for this (exam, student) first."""


class AttemptStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, attempt_id: int) -> Optional[Attempt]:
        return self.session.get(Attempt, attempt_id)

    def find_for(self, exam_id: int, student_id: int) -> Optional[Attempt]:
        stmt = select(Attempt).where(
            (Attempt.exam_id == exam_id) & (Attempt.student_id == student_id)
        )
        return self.session.exec(stmt).first()

    def create(self, exam_id: int, student_id: int, started_at: datetime) -> Attempt:
        attempt = Attempt(
            exam_id=exam_id,
            student_id=student_id,
            status=AttemptStatus.IN_PROGRESS.value,
            started_at=started_at,
        )
        self.session.add(attempt)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.info("Attempt for exam %s student %s already exists", exam_id, student_id)
            raise DuplicateAttemptError(str(exc.orig)) from exc
        self.session.refresh(attempt)
        return attempt

    def claim_submission(self, attempt_id: int, submitted_at: datetime) -> bool:
        """Move an in-progress attempt to submitted, compare-and-set style.

        Returns False if the row was already terminal. Not committed here.
        """
        stmt = (
            update(Attempt)
            .where(Attempt.id == attempt_id)
            .where(Attempt.status == AttemptStatus.IN_PROGRESS.value)
            .where(Attempt.submitted_at.is_(None))
            .values(status=AttemptStatus.SUBMITTED.value, submitted_at=submitted_at)
            .execution_options(synchronize_session=False)
        )
        result = self.session.exec(stmt)
        return result.rowcount == 1

    def record_answers(self, attempt_id: int, graded: Iterable[GradedAnswer]) -> None:
        for g in graded:
            self.session.add(
                AttemptAnswer(
                    attempt_id=attempt_id,
                    question_id=g.question_id,
                    selected_option=g.selected_option,
                    matching_pairs=g.matching_pairs,
                    is_correct=g.is_correct,
                    marks_awarded=g.marks_awarded,
                )
            )
        self.session.flush()

    def finalise(self, attempt_id: int, score: int, total_marks: int, time_taken_seconds: int) -> None:
        stmt = (
            update(Attempt)
            .where(Attempt.id == attempt_id)
            .values(score=score, total_marks=total_marks, time_taken_seconds=time_taken_seconds)
            .execution_options(synchronize_session=False)
        )
        self.session.exec(stmt)

    def answers_for(self, attempt_id: int) -> List[AttemptAnswer]:
        stmt = select(AttemptAnswer).where(AttemptAnswer.attempt_id == attempt_id)
        return list(self.session.exec(stmt).all())

    def list_for_exam(self, exam_id: int) -> List[Attempt]:
        stmt = select(Attempt).where(Attempt.exam_id == exam_id).order_by(Attempt.id)
        return list(self.session.exec(stmt).all())

    def list_submitted_for_student(self, student_id: int, limit: int = 20) -> List[Attempt]:
        stmt = (
            select(Attempt)
            .where(Attempt.student_id == student_id)
            .where(Attempt.status == AttemptStatus.SUBMITTED.value)
            .order_by(Attempt.submitted_at.desc())
            .limit(limit)
        )
        return list(self.session.exec(stmt).all())
