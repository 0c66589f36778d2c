"""
Quiz attempt database model.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from quiz_engine.database import Base
from quiz_engine.utils import utc_now

if TYPE_CHECKING:
    from quiz_engine.models.db.quiz import Quiz


class QuizAttemptRecord(Base):
    """
    One user's run through a quiz.
    completed_at stays NULL until the attempt is submitted.
    """

    __tablename__ = "quiz_attempts"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )

    # References
    quiz_id: Mapped[str] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    time_taken_seconds: Mapped[int | None] = mapped_column(nullable=True)

    # Results
    score: Mapped[int] = mapped_column(default=0, nullable=False)
    max_score: Mapped[int] = mapped_column(default=0, nullable=False)

    # Scored answers snapshot (stored as JSON string)
    answers_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    quiz: Mapped["Quiz"] = relationship("Quiz", back_populates="attempts")

    @property
    def answers(self) -> list[dict[str, Any]]:
        """Parse answers from JSON."""
        if not self.answers_json:
            return []
        try:
            return json.loads(self.answers_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @answers.setter
    def answers(self, value: list[dict[str, Any]] | None) -> None:
        """Serialize answers to JSON."""
        self.answers_json = json.dumps(value, ensure_ascii=False) if value else None

    @property
    def is_completed(self) -> bool:
        """Check if attempt is completed."""
        return self.completed_at is not None
