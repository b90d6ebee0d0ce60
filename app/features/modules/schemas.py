from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class QuestionOption(BaseModel):
    text: str


class Question(BaseModel):
    """A graded multiple-choice question.

    ``correct_option_index`` is 0-based and must index into ``options``.
    """

    id: Optional[str] = None
    question_text: str
    options: List[QuestionOption]
    correct_option_index: int
    points: int = Field(10, ge=0)

    @model_validator(mode="after")
    def check_options(self) -> "Question":
        if len(self.options) < 2:
            raise ValueError("question needs at least two options")
        if not 0 <= self.correct_option_index < len(self.options):
            raise ValueError("correct_option_index must index into options")
        return self

    class Config:
        from_attributes = True


class QuestionPublic(BaseModel):
    """Question as shown to a quiz taker (answer key stripped)."""

    id: Optional[str] = None
    question_text: str
    options: List[QuestionOption]
    points: int


class QuestionDraft(BaseModel):
    """Loose question payload from the admin editor; incomplete drafts are dropped on save."""

    question_text: str = ""
    options: List[QuestionOption] = Field(default_factory=list)
    correct_option_index: int = 0
    points: int = 10

    def is_complete(self) -> bool:
        return (
            bool(self.question_text)
            and len(self.options) >= 2
            and all(o.text.strip() != "" for o in self.options)
        )


class ModuleBase(BaseModel):
    title: str
    description: str = ""
    youtube_video_url: str


class ModuleSave(ModuleBase):
    questions: List[QuestionDraft] = Field(default_factory=list)


class Module(ModuleBase):
    id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ModuleCard(Module):
    """Catalogue entry with the caller's history for the module."""

    thumbnail_url: Optional[str] = None
    best_score: Optional[int] = None
    attempts_count: Optional[int] = None
    max_attempts: int


class ModuleDetail(Module):
    questions: List[QuestionPublic] = Field(default_factory=list)


class ModuleEdit(Module):
    questions: List[Question] = Field(default_factory=list)
