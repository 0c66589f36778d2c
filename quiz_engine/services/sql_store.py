"""Attempt store backed by the SQL database."""
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload, sessionmaker

from quiz_engine.database import SessionLocal
from quiz_engine.errors import Forbidden, NotFound, StoreError
from quiz_engine.models.db import Quiz, QuizAttemptRecord, QuizQuestion
from quiz_engine.models.quiz import (
    AttemptPatch,
    QuestionSpec,
    QuizAnswer,
    QuizAttempt,
    QuizDefinition,
)
from quiz_engine.utils import as_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")


def quiz_to_definition(quiz: Quiz, with_questions: bool = True) -> QuizDefinition:
    """Convert a Quiz row (and its questions) to the domain model."""
    questions = []
    if with_questions:
        questions = [
            QuestionSpec(
                id=question.id,
                text=question.question_text,
                type=question.question_type,
                options=question.options,
                correct_answer=question.correct_answer,
                explanation=question.explanation,
                points=question.points,
                order_index=question.order_index,
            )
            for question in sorted(quiz.questions, key=lambda q: q.order_index)
        ]
    return QuizDefinition(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        subject=quiz.subject,
        author_id=quiz.author_id,
        time_limit_minutes=quiz.time_limit_minutes,
        is_active=quiz.is_active,
        questions=questions,
        created_at=as_utc(quiz.created_at),
    )


def record_to_attempt(record: QuizAttemptRecord) -> QuizAttempt:
    """Convert a QuizAttemptRecord row to the domain model."""
    return QuizAttempt(
        id=record.id,
        quiz_id=record.quiz_id,
        user_id=record.user_id,
        started_at=as_utc(record.started_at),
        score=record.score,
        max_score=record.max_score,
        answers=[QuizAnswer.from_dict(item) for item in record.answers],
        completed_at=as_utc(record.completed_at),
        time_taken_seconds=record.time_taken_seconds,
    )


class SqlAttemptStore:
    """
    AttemptStore implementation on SQLAlchemy.

    Each operation opens its own session and runs in the thread pool so the
    event loop driving the quiz timers is never blocked.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as e:
            logger.error(f"Attempt store failure in {func.__name__}: {e}")
            raise StoreError(f"Attempt store unavailable: {e}") from e

    # Quizzes

    async def create_quiz(self, definition: QuizDefinition) -> str:
        return await self._run(self._create_quiz, definition)

    def _create_quiz(self, definition: QuizDefinition) -> str:
        with self._session_factory() as db:
            quiz = Quiz(
                title=definition.title,
                description=definition.description,
                subject=definition.subject,
                author_id=definition.author_id,
                time_limit_minutes=definition.time_limit_minutes,
                is_active=definition.is_active,
            )
            db.add(quiz)
            db.commit()
            return quiz.id

    async def create_questions(self, quiz_id: str, specs: list[QuestionSpec]) -> None:
        await self._run(self._create_questions, quiz_id, specs)

    def _create_questions(self, quiz_id: str, specs: list[QuestionSpec]) -> None:
        with self._session_factory() as db:
            if db.get(Quiz, quiz_id) is None:
                raise NotFound("Quiz not found")
            for spec in specs:
                question = QuizQuestion(
                    quiz_id=quiz_id,
                    question_text=spec.text,
                    question_type=spec.type,
                    correct_answer=spec.correct_answer,
                    explanation=spec.explanation,
                    points=spec.points,
                    order_index=spec.order_index,
                )
                question.options = spec.options
                db.add(question)
            db.commit()

    async def fetch_quiz(self, quiz_id: str) -> QuizDefinition:
        return await self._run(self._fetch_quiz, quiz_id)

    def _fetch_quiz(self, quiz_id: str) -> QuizDefinition:
        with self._session_factory() as db:
            quiz = db.execute(
                select(Quiz)
                .options(selectinload(Quiz.questions))
                .where(Quiz.id == quiz_id)
            ).scalar_one_or_none()
            if quiz is None:
                raise NotFound("Quiz not found")
            return quiz_to_definition(quiz)

    async def list_quizzes(self, active_only: bool = True) -> list[QuizDefinition]:
        return await self._run(self._list_quizzes, active_only)

    def _list_quizzes(self, active_only: bool) -> list[QuizDefinition]:
        with self._session_factory() as db:
            query = select(Quiz).options(selectinload(Quiz.questions))
            if active_only:
                query = query.where(Quiz.is_active.is_(True))
            query = query.order_by(Quiz.created_at.desc())
            return [quiz_to_definition(quiz) for quiz in db.execute(query).scalars().all()]

    async def set_quiz_active(self, quiz_id: str, author_id: str, active: bool) -> None:
        await self._run(self._set_quiz_active, quiz_id, author_id, active)

    def _set_quiz_active(self, quiz_id: str, author_id: str, active: bool) -> None:
        with self._session_factory() as db:
            quiz = db.get(Quiz, quiz_id)
            if quiz is None:
                raise NotFound("Quiz not found")
            if quiz.author_id != author_id:
                raise Forbidden("Only the author can change this quiz")
            quiz.is_active = active
            db.commit()

    # Attempts

    async def create_attempt(
        self, quiz_id: str, user_id: str, started_at: datetime
    ) -> str:
        return await self._run(self._create_attempt, quiz_id, user_id, started_at)

    def _create_attempt(self, quiz_id: str, user_id: str, started_at: datetime) -> str:
        with self._session_factory() as db:
            if db.get(Quiz, quiz_id) is None:
                raise NotFound("Quiz not found")
            record = QuizAttemptRecord(
                quiz_id=quiz_id,
                user_id=user_id,
                started_at=started_at,
            )
            record.answers = []
            db.add(record)
            db.commit()
            return record.id

    async def get_attempt(self, attempt_id: str) -> QuizAttempt:
        return await self._run(self._get_attempt, attempt_id)

    def _get_attempt(self, attempt_id: str) -> QuizAttempt:
        with self._session_factory() as db:
            record = db.get(QuizAttemptRecord, attempt_id)
            if record is None:
                raise NotFound("Attempt not found")
            return record_to_attempt(record)

    async def update_attempt(
        self, attempt_id: str, owner_id: str, patch: AttemptPatch
    ) -> QuizAttempt:
        return await self._run(self._update_attempt, attempt_id, owner_id, patch)

    def _update_attempt(
        self, attempt_id: str, owner_id: str, patch: AttemptPatch
    ) -> QuizAttempt:
        with self._session_factory() as db:
            record = db.get(QuizAttemptRecord, attempt_id)
            if record is None:
                raise NotFound("Attempt not found")
            if record.user_id != owner_id:
                raise Forbidden("Attempt belongs to another user")

            record.score = patch.score
            record.max_score = patch.max_score
            record.answers = [answer.to_dict() for answer in patch.answers]
            record.completed_at = patch.completed_at
            record.time_taken_seconds = patch.time_taken_seconds

            db.commit()
            db.refresh(record)
            return record_to_attempt(record)

    async def list_attempts(self, user_id: str) -> list[QuizAttempt]:
        return await self._run(self._list_attempts, QuizAttemptRecord.user_id == user_id)

    async def list_quiz_attempts(self, quiz_id: str) -> list[QuizAttempt]:
        return await self._run(self._list_attempts, QuizAttemptRecord.quiz_id == quiz_id)

    def _list_attempts(self, criterion) -> list[QuizAttempt]:
        with self._session_factory() as db:
            records = db.execute(
                select(QuizAttemptRecord)
                .where(criterion)
                .order_by(QuizAttemptRecord.started_at.desc())
            ).scalars().all()
            return [record_to_attempt(record) for record in records]


def open_store() -> SqlAttemptStore:
    """Store bound to the application's session factory."""
    return SqlAttemptStore(SessionLocal)
