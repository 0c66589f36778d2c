"""Contract of the attempt store the engine persists through."""
from __future__ import annotations

from datetime import datetime
from typing import Protocol

from quiz_engine.models.quiz import (
    AttemptPatch,
    QuestionSpec,
    QuizAttempt,
    QuizDefinition,
)


class AttemptStore(Protocol):
    """
    Persistence and query operations used by the lifecycle manager.

    Every operation may fail with StoreError; missing records raise NotFound
    and ownership mismatches raise Forbidden.
    """

    async def create_quiz(self, definition: QuizDefinition) -> str: ...

    async def create_questions(self, quiz_id: str, specs: list[QuestionSpec]) -> None: ...

    async def fetch_quiz(self, quiz_id: str) -> QuizDefinition: ...

    async def list_quizzes(self, active_only: bool = True) -> list[QuizDefinition]: ...

    async def create_attempt(
        self, quiz_id: str, user_id: str, started_at: datetime
    ) -> str: ...

    async def get_attempt(self, attempt_id: str) -> QuizAttempt: ...

    async def update_attempt(
        self, attempt_id: str, owner_id: str, patch: AttemptPatch
    ) -> QuizAttempt: ...

    async def list_attempts(self, user_id: str) -> list[QuizAttempt]: ...

    async def list_quiz_attempts(self, quiz_id: str) -> list[QuizAttempt]: ...

    async def set_quiz_active(self, quiz_id: str, author_id: str, active: bool) -> None: ...
