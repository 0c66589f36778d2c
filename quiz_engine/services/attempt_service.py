"""Attempt lifecycle: creating quizzes, starting and finalizing attempts, scores."""
import logging
import time
from collections.abc import Callable
from datetime import datetime

from quiz_engine.config import EASY_MAX_QUESTIONS, MEDIUM_MAX_QUESTIONS
from quiz_engine.errors import Forbidden, IntegrityViolation, NotFound, ValidationError
from quiz_engine.models.quiz import (
    AttemptPatch,
    QuizAnswer,
    QuizAttempt,
    QuizDefinition,
    QuizDraft,
    QuizScore,
    QuizStats,
    ScoreSummary,
)
from quiz_engine.services.identity import Identity, IdentityProvider, require_user
from quiz_engine.services.question_validator import to_question_spec, validate
from quiz_engine.services.scoring import percentage
from quiz_engine.services.store import AttemptStore
from quiz_engine.utils import from_epoch

logger = logging.getLogger(__name__)

EMPTY_TITLE = "EMPTY_TITLE"
EMPTY_SUBJECT = "EMPTY_SUBJECT"
NO_QUESTIONS = "NO_QUESTIONS"
INVALID_TIME_LIMIT = "INVALID_TIME_LIMIT"


def difficulty_for(questions_count: int) -> str:
    """Difficulty label derived from the number of questions."""
    if questions_count <= EASY_MAX_QUESTIONS:
        return "easy"
    if questions_count <= MEDIUM_MAX_QUESTIONS:
        return "medium"
    return "hard"


def check_quiz_info(title: str, subject: str, time_limit_minutes: int | None) -> str | None:
    """Reason code for invalid quiz metadata, None when it is fine."""
    if not title or not title.strip():
        return EMPTY_TITLE
    if not subject or not subject.strip():
        return EMPTY_SUBJECT
    if time_limit_minutes is not None and time_limit_minutes <= 0:
        return INVALID_TIME_LIMIT
    return None


def summarize_scores(scores: list[QuizScore]) -> ScoreSummary:
    """Aggregate a user's completed attempts."""
    if not scores:
        return ScoreSummary()
    percentages = [item.percentage for item in scores]
    return ScoreSummary(
        attempts_count=len(scores),
        total_score=sum(item.score for item in scores),
        average_percentage=round(sum(percentages) / len(percentages), 1),
        best_percentage=max(percentages),
        last_attempt_at=max(item.completed_at for item in scores),
    )


class AttemptLifecycleManager:
    """
    Orchestrates quizzes and attempts against the attempt store.

    Every mutating operation requires an identity from the provider; ownership
    checks are done here and again by the store.
    """

    def __init__(
        self,
        store: AttemptStore,
        identity: IdentityProvider,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.identity = identity
        self.clock = clock

    def now(self) -> datetime:
        return from_epoch(self.clock())

    def current_user(self) -> Identity:
        return require_user(self.identity)

    # Quizzes

    async def create_quiz(self, draft: QuizDraft) -> QuizDefinition:
        """
        Persist a quiz and its questions.

        Raises:
            Unauthenticated: no caller identity.
            ValidationError: metadata or any question is invalid.
        """
        author = self.current_user()

        reason = check_quiz_info(draft.title, draft.subject, draft.time_limit_minutes)
        if reason:
            raise ValidationError(reason)
        if not draft.questions:
            raise ValidationError(NO_QUESTIONS)

        specs = []
        for index, question in enumerate(draft.questions):
            result = validate(question)
            if not result:
                raise ValidationError(result.reason, f"Question {index + 1}: {result.reason}")
            specs.append(to_question_spec(question, index))

        definition = QuizDefinition(
            id=None,
            title=draft.title.strip(),
            description=(draft.description or "").strip(),
            subject=draft.subject.strip(),
            author_id=author.id,
            time_limit_minutes=draft.time_limit_minutes,
            is_active=False,
        )
        # Hidden from the catalogue until every question is stored
        quiz_id = await self.store.create_quiz(definition)
        await self.store.create_questions(quiz_id, specs)
        await self.store.set_quiz_active(quiz_id, author.id, True)
        logger.info(f"Quiz {quiz_id} created by {author.id} with {len(specs)} questions")
        return await self.store.fetch_quiz(quiz_id)

    async def get_quiz(self, quiz_id: str) -> QuizDefinition:
        return await self.store.fetch_quiz(quiz_id)

    async def list_active_quizzes(self) -> list[QuizDefinition]:
        return await self.store.list_quizzes(active_only=True)

    async def retire_quiz(self, quiz_id: str) -> None:
        """Soft-retire a quiz; its questions and attempts are kept."""
        author = self.current_user()
        quiz = await self.store.fetch_quiz(quiz_id)
        if quiz.author_id != author.id:
            raise Forbidden("Only the author can retire this quiz")
        await self.store.set_quiz_active(quiz_id, author.id, False)
        logger.info(f"Quiz {quiz_id} retired by {author.id}")

    async def quiz_stats(self, quiz_id: str) -> QuizStats:
        quiz = await self.store.fetch_quiz(quiz_id)
        return await self._stats_for(quiz)

    async def _stats_for(self, quiz: QuizDefinition) -> QuizStats:
        attempts = [
            attempt
            for attempt in await self.store.list_quiz_attempts(quiz.id)
            if attempt.is_completed
        ]
        average = 0.0
        if attempts:
            values = [percentage(item.score, item.max_score) for item in attempts]
            average = round(sum(values) / len(values), 1)
        return QuizStats(
            questions_count=len(quiz.questions),
            total_attempts=len(attempts),
            average_percentage=average,
            difficulty=difficulty_for(len(quiz.questions)),
        )

    async def list_active_quizzes_with_stats(self) -> list[tuple[QuizDefinition, QuizStats]]:
        quizzes = await self.list_active_quizzes()
        return [(quiz, await self._stats_for(quiz)) for quiz in quizzes]

    # Attempts

    async def start_attempt(self, quiz_id: str) -> str:
        """
        Create an in-progress attempt for the caller.

        Raises:
            Unauthenticated: no caller identity.
            NotFound: quiz missing or retired.
        """
        user = self.current_user()
        quiz = await self.store.fetch_quiz(quiz_id)
        if not quiz.is_active:
            raise NotFound("Quiz not found")
        attempt_id = await self.store.create_attempt(quiz_id, user.id, self.now())
        logger.info(f"Attempt {attempt_id} started by {user.id} on quiz {quiz_id}")
        return attempt_id

    async def submit_attempt(
        self,
        attempt_id: str,
        answers: list[QuizAnswer],
        time_taken: int | None = None,
    ) -> QuizAttempt:
        """
        Finalize an attempt with its scored answers.

        The maximum score is the sum of the quiz's per-question points, the
        same figure the scoring engine reports.

        Raises:
            Unauthenticated: no caller identity.
            Forbidden: the caller does not own the attempt.
            IntegrityViolation: answers do not match the quiz.
        """
        user = self.current_user()
        attempt = await self.store.get_attempt(attempt_id)
        if attempt.user_id != user.id:
            raise Forbidden("Attempt belongs to another user")
        if attempt.is_completed:
            logger.warning(f"Attempt {attempt_id} is being submitted again")

        quiz = await self.store.fetch_quiz(attempt.quiz_id)
        if len(answers) != len(quiz.questions):
            raise IntegrityViolation(
                f"Attempt {attempt_id} has {len(answers)} answers for "
                f"{len(quiz.questions)} questions"
            )

        total = sum(answer.points_earned for answer in answers)
        max_score = quiz.max_score
        if total > max_score:
            raise IntegrityViolation(f"Score {total} exceeds maximum {max_score}")

        patch = AttemptPatch(
            score=total,
            max_score=max_score,
            answers=list(answers),
            completed_at=self.now(),
            time_taken_seconds=time_taken,
        )
        result = await self.store.update_attempt(attempt_id, user.id, patch)
        logger.info(f"Attempt {attempt_id} submitted: {total}/{max_score}")
        return result

    async def list_user_scores(self, user_id: str | None = None) -> list[QuizScore]:
        """Completed attempts of a user (default: the caller), newest first."""
        target = user_id or self.current_user().id
        attempts = await self.store.list_attempts(target)

        quizzes: dict[str, QuizDefinition | None] = {}
        scores = []
        for attempt in attempts:
            if not attempt.is_completed:
                continue
            if attempt.quiz_id not in quizzes:
                try:
                    quizzes[attempt.quiz_id] = await self.store.fetch_quiz(attempt.quiz_id)
                except NotFound:
                    quizzes[attempt.quiz_id] = None
            quiz = quizzes[attempt.quiz_id]
            scores.append(
                QuizScore(
                    attempt_id=attempt.id,
                    quiz_id=attempt.quiz_id,
                    quiz_title=quiz.title if quiz else "",
                    quiz_subject=quiz.subject if quiz else "",
                    score=attempt.score,
                    max_score=attempt.max_score,
                    percentage=percentage(attempt.score, attempt.max_score),
                    completed_at=attempt.completed_at,
                    time_taken_seconds=attempt.time_taken_seconds,
                )
            )

        scores.sort(key=lambda item: item.completed_at, reverse=True)
        return scores
