"""Two-step quiz authoring: quiz info first, then questions."""
from __future__ import annotations

import enum
import logging
from dataclasses import replace

from quiz_engine.errors import SessionStateError, ValidationError
from quiz_engine.models.quiz import QuestionDraft, QuestionSpec, QuizDefinition, QuizDraft
from quiz_engine.services.attempt_service import (
    NO_QUESTIONS,
    AttemptLifecycleManager,
    check_quiz_info,
)
from quiz_engine.services.question_validator import (
    VALID,
    ValidationResult,
    to_question_spec,
    validate,
)

logger = logging.getLogger(__name__)

WRONG_STEP = "WRONG_STEP"
SUBMIT_IN_PROGRESS = "SUBMIT_IN_PROGRESS"


class DraftStep(str, enum.Enum):
    INFO = "info"
    QUESTIONS = "questions"


class QuizDraftBuilder:
    """
    Accumulates quiz metadata and validated questions.

    Questions are only accepted in the QUESTIONS step; a rejected question
    leaves the draft untouched. order_index stays contiguous from 0.
    """

    def __init__(self, manager: AttemptLifecycleManager | None = None) -> None:
        self._manager = manager
        self._submitting = False
        self.reset()

    def reset(self) -> None:
        self.step = DraftStep.INFO
        self.title = ""
        self.description = ""
        self.subject = ""
        self.time_limit_minutes: int | None = None
        self._questions: list[QuestionSpec] = []

    # Info step

    def set_info(
        self,
        title: str,
        subject: str,
        description: str = "",
        time_limit_minutes: int | None = None,
    ) -> None:
        self.title = title
        self.subject = subject
        self.description = description
        # 0 or None clears the limit
        self.time_limit_minutes = time_limit_minutes or None

    def proceed(self) -> ValidationResult:
        """Move from INFO to QUESTIONS when title and subject are set."""
        reason = check_quiz_info(self.title, self.subject, self.time_limit_minutes)
        if reason:
            return ValidationResult(ok=False, reason=reason)
        self.step = DraftStep.QUESTIONS
        return VALID

    def back(self) -> None:
        self.step = DraftStep.INFO

    # Questions step

    @property
    def questions(self) -> list[QuestionSpec]:
        return list(self._questions)

    def add_question(self, draft: QuestionDraft) -> ValidationResult:
        if self.step is not DraftStep.QUESTIONS:
            return ValidationResult(ok=False, reason=WRONG_STEP)
        result = validate(draft)
        if not result:
            return result
        self._questions.append(to_question_spec(draft, len(self._questions)))
        return VALID

    def remove_question(self, index: int) -> bool:
        if not 0 <= index < len(self._questions):
            return False
        del self._questions[index]
        self._questions = [
            replace(question, order_index=position)
            for position, question in enumerate(self._questions)
        ]
        return True

    # Submission

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    @property
    def can_submit(self) -> bool:
        return (
            not self._submitting
            and bool(self._questions)
            and check_quiz_info(self.title, self.subject, self.time_limit_minutes) is None
        )

    def to_draft(self) -> QuizDraft:
        return QuizDraft(
            title=self.title.strip(),
            description=self.description.strip(),
            subject=self.subject.strip(),
            time_limit_minutes=self.time_limit_minutes,
            questions=[
                QuestionDraft(
                    text=question.text,
                    type=question.type,
                    options=list(question.options),
                    correct_answer=question.correct_answer,
                    explanation=question.explanation or "",
                    points=question.points,
                )
                for question in self._questions
            ],
        )

    async def submit(self) -> QuizDefinition:
        """
        Hand the draft to the lifecycle manager.

        Disabled while a submission is in flight. The builder resets on
        success; on failure the draft is kept and the error propagates.
        """
        if self._manager is None:
            raise SessionStateError("Builder has no lifecycle manager")
        if self._submitting:
            raise ValidationError(SUBMIT_IN_PROGRESS)
        if not self._questions:
            raise ValidationError(NO_QUESTIONS)
        reason = check_quiz_info(self.title, self.subject, self.time_limit_minutes)
        if reason:
            raise ValidationError(reason)

        self._submitting = True
        try:
            quiz = await self._manager.create_quiz(self.to_draft())
        except Exception:
            logger.warning(f"Quiz creation failed, keeping draft '{self.title}'")
            raise
        finally:
            self._submitting = False

        self.reset()
        return quiz


async def build_quiz(
    manager: AttemptLifecycleManager,
    title: str,
    subject: str,
    questions: list[QuestionDraft],
    description: str = "",
    time_limit_minutes: int | None = None,
) -> QuizDefinition:
    """Run a complete payload through both builder steps and submit it."""
    builder = QuizDraftBuilder(manager)
    builder.set_info(title, subject, description, time_limit_minutes)
    result = builder.proceed()
    if not result:
        raise ValidationError(result.reason)
    for index, draft in enumerate(questions):
        result = builder.add_question(draft)
        if not result:
            raise ValidationError(result.reason, f"Question {index + 1}: {result.reason}")
    return await builder.submit()
