"""Database models."""
from quiz_engine.models.db.quiz import Quiz, QuizQuestion
from quiz_engine.models.db.attempt import QuizAttemptRecord

__all__ = [
    "Quiz",
    "QuizQuestion",
    "QuizAttemptRecord",
]
