from pathlib import Path

import pytest
from sqlalchemy.orm import sessionmaker

from quiz_engine.database import init_db, make_engine
from quiz_engine.errors import StoreError
from quiz_engine.models.quiz import QuestionDraft, QuizDraft
from quiz_engine.services.attempt_service import AttemptLifecycleManager
from quiz_engine.services.identity import Identity, StaticIdentityProvider
from quiz_engine.services.sql_store import SqlAttemptStore


class FakeClock:
    """Wall clock the tests move by hand."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(SqlAttemptStore):
    """SQL store that counts attempt updates and can be told to fail them."""

    def __init__(self, session_factory: sessionmaker) -> None:
        super().__init__(session_factory)
        self.update_calls = 0
        self.fail_updates = 0

    async def update_attempt(self, attempt_id, owner_id, patch):
        self.update_calls += 1
        if self.fail_updates:
            self.fail_updates -= 1
            raise StoreError("Attempt store unavailable: connection lost")
        return await super().update_attempt(attempt_id, owner_id, patch)


def sample_questions() -> list[QuestionDraft]:
    return [
        QuestionDraft(
            text="What is the capital of France?",
            type="multiple_choice",
            options=["Paris", "Rome", "", "Madrid"],
            correct_answer="Paris",
            points=10,
        ),
        QuestionDraft(
            text="The Earth is flat.",
            type="true_false",
            correct_answer="False",
            explanation="It is an oblate spheroid.",
            points=10,
        ),
        QuestionDraft(
            text="Chemical symbol for gold?",
            type="short_answer",
            correct_answer="Au",
            points=5,
        ),
    ]


def sample_draft(time_limit_minutes: int | None = None, **overrides) -> QuizDraft:
    values = {
        "title": "General knowledge",
        "subject": "Trivia",
        "description": "A warm-up",
        "time_limit_minutes": time_limit_minutes,
        "questions": sample_questions(),
    }
    values.update(overrides)
    return QuizDraft(**values)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "quizzes.db"


@pytest.fixture
def session_factory(db_path: Path):
    engine = make_engine(f"sqlite:///{db_path}")
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def store(session_factory) -> RecordingStore:
    return RecordingStore(session_factory)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def author() -> Identity:
    return Identity(id="author-1", display_name="Ada")


@pytest.fixture
def player() -> Identity:
    return Identity(id="player-1", display_name="Grace")


@pytest.fixture
def make_manager(store, clock):
    def _make(identity: Identity | None) -> AttemptLifecycleManager:
        return AttemptLifecycleManager(store, StaticIdentityProvider(identity), clock=clock)

    return _make


@pytest.fixture
def create_quiz(make_manager, author):
    async def _create(time_limit_minutes: int | None = None, **overrides):
        manager = make_manager(author)
        return await manager.create_quiz(sample_draft(time_limit_minutes, **overrides))

    return _create


@pytest.fixture
def quiz_draft():
    return sample_draft
