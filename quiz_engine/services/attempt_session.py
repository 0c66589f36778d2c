"""
Quiz-taking state machine.

An AttemptSession lives while a user is taking a quiz. It keeps the current
question, the captured answers and the deadline, and drives submission. Two
event sources can submit: the user, and the one-second tick once the deadline
has passed. Both go through `submit`, whose single-shot latch is taken
synchronously before the first await, so at most one submission is ever in
flight or completed for an attempt.
"""
from __future__ import annotations

import asyncio
import enum
import inspect
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from quiz_engine.config import TICK_INTERVAL_SECONDS
from quiz_engine.errors import SessionStateError, ValidationError
from quiz_engine.models.quiz import (
    QuestionSpec,
    QuestionType,
    QuizAttempt,
    QuizDefinition,
    ScoreResult,
)
from quiz_engine.services.scoring import score
from quiz_engine.utils import from_epoch

if TYPE_CHECKING:
    from quiz_engine.services.attempt_service import AttemptLifecycleManager

logger = logging.getLogger(__name__)

UNKNOWN_QUESTION = "UNKNOWN_QUESTION"

ConfirmCallback = Callable[[], Awaitable[bool] | bool]


class SessionStatus(str, enum.Enum):
    ANSWERING = "answering"
    SUBMITTING = "submitting"
    RESULTS = "results"
    DISPOSED = "disposed"


@dataclass
class AttemptSessionState:
    """Read-only view of a session for the presentation layer."""

    attempt_id: str
    quiz_id: str
    user_id: str
    status: str
    current_index: int
    question_count: int
    answers: dict[str, str] = field(default_factory=dict)
    started_at: datetime | None = None
    deadline: datetime | None = None
    remaining_seconds: int | None = None
    expired: bool = False
    needs_manual_retry: bool = False
    last_error: str | None = None


class AttemptSession:
    """
    One user's run through one quiz.

    Dependencies (lifecycle manager, clock, confirmation prompt) are injected;
    call `start()` from a running event loop to arm the timer and `dispose()`
    when the player closes.
    """

    def __init__(
        self,
        quiz: QuizDefinition,
        attempt_id: str,
        manager: AttemptLifecycleManager,
        user_id: str = "",
        clock: Callable[[], float] = time.time,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        self.quiz = quiz
        self.attempt_id = attempt_id
        self.user_id = user_id
        self._manager = manager
        self._clock = clock
        self._tick_interval = tick_interval
        self._confirm = confirm

        self.status = SessionStatus.ANSWERING
        self.current_index = 0
        self._answers: dict[str, str] = {}
        self.started_at = clock()
        self.deadline: float | None = None
        if quiz.time_limit_minutes:
            self.deadline = self.started_at + quiz.time_limit_minutes * 60

        self._submit_latch = False
        self._timer: asyncio.Task | None = None
        self.expired = False
        self.last_error: Exception | None = None
        self.result: ScoreResult | None = None
        self.attempt: QuizAttempt | None = None

    # Introspection

    @property
    def question_count(self) -> int:
        return len(self.quiz.questions)

    @property
    def current_question(self) -> QuestionSpec | None:
        if not self.quiz.questions:
            return None
        return self.quiz.questions[self.current_index]

    @property
    def answers(self) -> dict[str, str]:
        return dict(self._answers)

    @property
    def remaining_seconds(self) -> int | None:
        if self.deadline is None:
            return None
        return max(0, math.ceil(self.deadline - self._clock()))

    @property
    def is_timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def needs_manual_retry(self) -> bool:
        """Time ran out and the automatic submission failed."""
        return (
            self.expired
            and self.status is SessionStatus.ANSWERING
            and self.last_error is not None
        )

    def is_answered(self, index: int) -> bool:
        if not 0 <= index < self.question_count:
            return False
        return bool(self._answers.get(self.quiz.questions[index].id))

    def snapshot(self) -> AttemptSessionState:
        return AttemptSessionState(
            attempt_id=self.attempt_id,
            quiz_id=self.quiz.id,
            user_id=self.user_id,
            status=self.status.value,
            current_index=self.current_index,
            question_count=self.question_count,
            answers=self.answers,
            started_at=from_epoch(self.started_at),
            deadline=from_epoch(self.deadline) if self.deadline is not None else None,
            remaining_seconds=self.remaining_seconds,
            expired=self.expired,
            needs_manual_retry=self.needs_manual_retry,
            last_error=str(self.last_error) if self.last_error else None,
        )

    # Answering

    def _time_is_up(self) -> bool:
        return self.expired or self.remaining_seconds == 0

    def set_answer(self, question_id: str, value: str) -> None:
        if self.status is not SessionStatus.ANSWERING:
            raise SessionStateError(f"Cannot answer while {self.status.value}")
        if self._time_is_up():
            raise SessionStateError("Time is up")
        if self.quiz.question_by_id(question_id) is None:
            raise ValidationError(UNKNOWN_QUESTION)
        self._answers[question_id] = value

    def can_proceed(self, question: QuestionSpec | None = None) -> bool:
        """An answer exists; for multiple choice it must be one of the options."""
        question = question or self.current_question
        if question is None:
            return False
        answer = self._answers.get(question.id)
        if not answer:
            return False
        if question.type == QuestionType.MULTIPLE_CHOICE.value:
            return answer in question.options
        return True

    def next(self) -> bool:
        if self.status is not SessionStatus.ANSWERING:
            return False
        if self.current_index >= self.question_count - 1:
            return False
        if not self.can_proceed():
            return False
        self.current_index += 1
        return True

    def previous(self) -> bool:
        if self.status is not SessionStatus.ANSWERING or self.current_index <= 0:
            return False
        self.current_index -= 1
        return True

    def go_to(self, index: int) -> bool:
        """Jump from the question strip; answers already captured stay valid."""
        if self.status is not SessionStatus.ANSWERING:
            return False
        if not 0 <= index < self.question_count:
            return False
        self.current_index = index
        return True

    # Timer

    def start(self) -> None:
        """Arm the countdown if the quiz has a time limit."""
        if self.status is SessionStatus.ANSWERING and self.deadline is not None:
            self._start_timer()

    def _start_timer(self) -> None:
        if self.is_timer_running or self.expired:
            return
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())

    def _stop_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is None or timer.done():
            return
        # The tick that triggers auto-submit runs inside the timer task itself
        if timer is not asyncio.current_task():
            timer.cancel()

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            if not await self.tick():
                return

    async def tick(self) -> bool:
        """
        One timer beat. Returns False once ticking should stop.

        When the deadline has passed the session auto-submits exactly once.
        """
        if self.status is not SessionStatus.ANSWERING or self.deadline is None:
            return False
        if self.expired:
            return False
        if self.remaining_seconds > 0:
            return True

        self.expired = True
        logger.info(f"Attempt {self.attempt_id}: time is up, submitting")
        try:
            await self.submit(is_auto_submit=True)
        except Exception as e:
            # submit() already reverted the session and kept the error
            logger.error(f"Attempt {self.attempt_id}: auto-submit failed: {e}")
        return False

    # Submission

    async def _confirmed(self, confirm: ConfirmCallback | None) -> bool:
        prompt = confirm or self._confirm
        if prompt is None:
            return True
        answer: Any = prompt()
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _can_submit(self) -> bool:
        return self.status is SessionStatus.ANSWERING and not self._submit_latch

    async def submit(
        self,
        is_auto_submit: bool = False,
        confirm: ConfirmCallback | None = None,
    ) -> ScoreResult | None:
        """
        Score the captured answers and finalize the attempt.

        Manual submissions ask for confirmation first. Returns None when the
        call is a no-op (declined, already submitting, already submitted).
        On failure the session goes back to answering and the error is raised.
        """
        if not self._can_submit():
            return None
        if not is_auto_submit:
            if not await self._confirmed(confirm):
                return None
            # The timer may have fired while the prompt was open
            if not self._can_submit():
                return None

        self._submit_latch = True
        self.status = SessionStatus.SUBMITTING
        self._stop_timer()

        time_taken = int(self._clock() - self.started_at)
        result = score(self.quiz, self._answers)
        try:
            attempt = await self._manager.submit_attempt(
                self.attempt_id, result.answers, time_taken
            )
        except Exception as e:
            self.last_error = e
            self._submit_latch = False
            if self.status is SessionStatus.SUBMITTING:
                self.status = SessionStatus.ANSWERING
                self._resume_after_failure()
            logger.warning(
                f"Attempt {self.attempt_id}: submission failed "
                f"({'auto' if is_auto_submit else 'manual'}): {e}"
            )
            raise

        self.last_error = None
        self.attempt = attempt
        self.result = result
        if self.status is SessionStatus.SUBMITTING:
            self.status = SessionStatus.RESULTS
        logger.info(
            f"Attempt {self.attempt_id}: submitted {result.total}/{result.max} "
            f"in {time_taken}s"
        )
        return result

    def _resume_after_failure(self) -> None:
        if self.deadline is None:
            return
        if self.remaining_seconds == 0:
            self.expired = True
        else:
            self._start_timer()

    async def retry_submit(self) -> ScoreResult | None:
        """Explicit retry once time is up and the automatic submission failed."""
        if not self.needs_manual_retry:
            raise SessionStateError("Nothing to retry")
        return await self.submit(is_auto_submit=True)

    # Teardown

    def dispose(self) -> None:
        """Discard the session; no tick or store call happens afterwards."""
        if self.status is SessionStatus.DISPOSED:
            return
        self._stop_timer()
        if self.status is not SessionStatus.RESULTS:
            logger.info(f"Attempt {self.attempt_id}: player closed before results")
        self.status = SessionStatus.DISPOSED


async def open_session(
    manager: AttemptLifecycleManager,
    quiz_id: str,
    tick_interval: float = TICK_INTERVAL_SECONDS,
    confirm: ConfirmCallback | None = None,
) -> AttemptSession:
    """Start an attempt for the caller and return its armed session."""
    user = manager.current_user()
    attempt_id = await manager.start_attempt(quiz_id)
    quiz = await manager.get_quiz(quiz_id)
    session = AttemptSession(
        quiz,
        attempt_id,
        manager,
        user_id=user.id,
        clock=manager.clock,
        tick_interval=tick_interval,
        confirm=confirm,
    )
    session.start()
    return session
