"""Domain models for quizzes, questions and attempts."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quiz_engine.config import DEFAULT_QUESTION_POINTS


class QuestionType(str, enum.Enum):
    """Supported question types."""

    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    SHORT_ANSWER = "short_answer"


@dataclass
class QuestionDraft:
    """A question as typed by an author, not yet validated."""

    text: str
    type: str = QuestionType.MULTIPLE_CHOICE.value
    options: list[str] = field(default_factory=list)
    correct_answer: str = ""
    explanation: str = ""
    points: int = DEFAULT_QUESTION_POINTS


@dataclass
class QuestionSpec:
    text: str
    type: str
    correct_answer: str
    points: int
    order_index: int
    options: list[str] = field(default_factory=list)
    explanation: str | None = None
    id: str | None = None


@dataclass
class QuizDraft:
    """Everything the builder hands over when a quiz is submitted."""

    title: str
    subject: str
    questions: list[QuestionDraft]
    description: str = ""
    time_limit_minutes: int | None = None


@dataclass
class QuizDefinition:
    id: str | None
    title: str
    description: str
    subject: str
    author_id: str
    time_limit_minutes: int | None = None
    is_active: bool = True
    questions: list[QuestionSpec] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def max_score(self) -> int:
        return sum(question.points for question in self.questions)

    def question_by_id(self, question_id: str) -> QuestionSpec | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


@dataclass
class QuizAnswer:
    """Scored answer to one question, frozen at submission."""

    question_id: str
    user_answer: str
    is_correct: bool
    points_earned: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "question_id": self.question_id,
            "user_answer": self.user_answer,
            "is_correct": self.is_correct,
            "points_earned": self.points_earned,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QuizAnswer:
        return cls(
            question_id=str(data["question_id"]),
            user_answer=str(data.get("user_answer", "")),
            is_correct=bool(data.get("is_correct", False)),
            points_earned=int(data.get("points_earned", 0)),
        )


@dataclass
class AttemptPatch:
    """Fields written when an attempt is finalized."""

    score: int
    max_score: int
    answers: list[QuizAnswer]
    completed_at: datetime
    time_taken_seconds: int | None = None


@dataclass
class QuizAttempt:
    id: str
    quiz_id: str
    user_id: str
    started_at: datetime
    score: int = 0
    max_score: int = 0
    answers: list[QuizAnswer] = field(default_factory=list)
    completed_at: datetime | None = None
    time_taken_seconds: int | None = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


def percentage(total: int, max_score: int) -> int:
    """Percentage rounded half up; an empty quiz scores 0%."""
    if max_score <= 0:
        return 0
    return (200 * total + max_score) // (2 * max_score)


@dataclass
class ScoreResult:
    """Output of the scoring engine."""

    answers: list[QuizAnswer]
    total: int
    max: int

    @property
    def percentage(self) -> int:
        return percentage(self.total, self.max)


@dataclass
class QuizScore:
    """One completed attempt joined with its quiz."""

    attempt_id: str
    quiz_id: str
    quiz_title: str
    quiz_subject: str
    score: int
    max_score: int
    percentage: int
    completed_at: datetime
    time_taken_seconds: int | None = None


@dataclass
class ScoreSummary:
    attempts_count: int = 0
    total_score: int = 0
    average_percentage: float = 0.0
    best_percentage: int = 0
    last_attempt_at: datetime | None = None


@dataclass
class QuizStats:
    questions_count: int
    total_attempts: int
    average_percentage: float
    difficulty: str
