"""Failure kinds raised by the attempt engine.

Services raise these; ``main.py`` turns them into JSON responses. Grading
never raises: malformed answers simply score zero.
"""

from typing import Any, Optional


class ExamEngineError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail}


class NotFoundError(ExamEngineError):
    """Exam or attempt is absent, or not visible to the caller."""

    status_code = 404


class ForbiddenError(ExamEngineError):
    status_code = 403


class ExamNotActiveError(ForbiddenError):
    """Published exam exists but ``now`` is outside its activity window."""


class ConflictError(ExamEngineError):
    """Duplicate or repeated terminal operation.

    ``result`` carries the already-computed attempt summary when there is one,
    so clients can treat the conflict as informational.
    """

    status_code = 409

    def __init__(self, detail: str, result: Optional[dict[str, Any]] = None):
        super().__init__(detail)
        self.result = result

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.result is not None:
            payload["already_submitted"] = True
            payload["result"] = self.result
        return payload


class BadRequestError(ExamEngineError):
    status_code = 400


class SubmissionFailedError(ExamEngineError):
    """Storage failed mid-submission; the transaction was rolled back."""

    status_code = 500
