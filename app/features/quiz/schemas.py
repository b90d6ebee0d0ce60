from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.common.utils import parse_datetime
from app.features.modules.schemas import QuestionPublic


class RawAttempt(BaseModel):
    """One finished quiz submission as stored in ``quiz_attempts``."""

    id: Optional[str] = None
    user_id: str
    module_id: str
    score: int
    completed_at: Optional[datetime] = None

    @field_validator("id", "user_id", "module_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("completed_at", mode="before")
    @classmethod
    def coerce_completed_at(cls, value: Any) -> Optional[datetime]:
        return parse_datetime(value)

    class Config:
        from_attributes = True


class QuizResult(BaseModel):
    score: int
    max_score: int
    is_perfect: bool
    attempt_number: int
    attempts_left: int
    is_last_attempt: bool


class GateOut(BaseModel):
    gate_id: str
    module_id: str
    state: str
    attempt_count: int
    max_attempts: int
    attempts_left: int
    best_score: Optional[int] = None
    quiz_available: bool
    # Populated while a quiz is running
    attempt_number: Optional[int] = None
    current_question_index: Optional[int] = None
    total_questions: int = 0
    current_question: Optional[QuestionPublic] = None
    selected_answers: List[Optional[int]] = Field(default_factory=list)
    can_go_next: bool = False
    can_go_previous: bool = False
    can_submit: bool = False
    result: Optional[QuizResult] = None


class AnswerIn(BaseModel):
    option_index: int = Field(..., ge=0)
