"""Request bodies for the JSON API."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class AnswerIn(BaseModel):
    question_id: int = Field(gt=0)
    # loosely typed on purpose: a bad value grades as incorrect, it is not rejected
    selected_option: Optional[Any] = None
    matching_pairs: Optional[Any] = None


class SubmitPayload(BaseModel):
    answers: List[AnswerIn] = Field(default_factory=list)


class MatchPairIn(BaseModel):
    left: str
    right: str


class CreateQuestionIn(BaseModel):
    prompt: str
    question_type: str = "single_choice"
    options: Optional[List[str]] = None
    correct_option: Optional[str] = None
    audio_url: Optional[str] = None
    match_pairs: Optional[List[MatchPairIn]] = None
    marks: int = 1


class CreateExamIn(BaseModel):
    title: str
    description: str = ""
    duration_minutes: int
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    is_published: bool = False
    questions: List[CreateQuestionIn] = Field(default_factory=list)
