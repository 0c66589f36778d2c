"""API route modules."""
from quiz_engine.routes import attempts, quizzes, scores

__all__ = ["attempts", "quizzes", "scores"]
