"""Pydantic models."""
from quiz_engine.models.attempts import AnswerUpdate, NavigateRequest, SubmitRequest
from quiz_engine.models.quizzes import QuestionCreate, QuizCreate

__all__ = [
    "AnswerUpdate",
    "NavigateRequest",
    "QuestionCreate",
    "QuizCreate",
    "SubmitRequest",
]
