"""
Quiz and QuizQuestion database models.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quiz_engine.database import Base
from quiz_engine.utils import utc_now

if TYPE_CHECKING:
    from quiz_engine.models.db.attempt import QuizAttemptRecord


def _new_id() -> str:
    return uuid.uuid4().hex


class Quiz(Base):
    """
    Quiz definition record.
    Immutable once created except for is_active (soft retirement).
    """

    __tablename__ = "quizzes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    subject: Mapped[str] = mapped_column(String(100), nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    time_limit_minutes: Mapped[int | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    # Relationships
    questions: Mapped[list["QuizQuestion"]] = relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.order_index",
    )
    attempts: Mapped[list["QuizAttemptRecord"]] = relationship(
        "QuizAttemptRecord", back_populates="quiz"
    )

    def __repr__(self) -> str:
        return f"<Quiz(id='{self.id}', title='{self.title}', is_active={self.is_active})>"


class QuizQuestion(Base):
    """
    Question belonging to a quiz, ordered by order_index.
    """

    __tablename__ = "quiz_questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    quiz_id: Mapped[str] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(String(20), nullable=False)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(nullable=False)
    order_index: Mapped[int] = mapped_column(nullable=False)

    # Options for multiple choice (stored as JSON string)
    options_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("quiz_id", "order_index", name="uq_quiz_question_order"),
    )

    # Relationships
    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="questions")

    @property
    def options(self) -> list[str]:
        """Parse options from JSON."""
        if not self.options_json:
            return []
        try:
            return json.loads(self.options_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @options.setter
    def options(self, value: list[str] | None) -> None:
        """Serialize options to JSON."""
        self.options_json = json.dumps(value, ensure_ascii=False) if value else None
