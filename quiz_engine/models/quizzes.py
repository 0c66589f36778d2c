"""Quiz-related Pydantic models."""
from typing import Literal

from pydantic import BaseModel, Field

from quiz_engine.config import DEFAULT_QUESTION_POINTS


class QuestionCreate(BaseModel):
    """Model for one authored question."""

    question_text: str
    question_type: Literal["multiple_choice", "true_false", "short_answer"] = "multiple_choice"
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""
    points: int = DEFAULT_QUESTION_POINTS


class QuizCreate(BaseModel):
    """Model for creating a new quiz."""

    title: str
    subject: str
    description: str = ""
    time_limit: int | None = Field(default=None, description="Minutes")
    questions: list[QuestionCreate] = Field(default_factory=list)
