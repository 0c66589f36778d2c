"""Validation of authored questions against their type's rules."""
from dataclasses import dataclass

from quiz_engine.config import MIN_CHOICE_OPTIONS
from quiz_engine.models.quiz import QuestionDraft, QuestionSpec, QuestionType

EMPTY_TEXT = "EMPTY_TEXT"
INSUFFICIENT_OPTIONS = "INSUFFICIENT_OPTIONS"
NO_CORRECT_ANSWER = "NO_CORRECT_ANSWER"
INVALID_POINTS = "INVALID_POINTS"
UNKNOWN_TYPE = "UNKNOWN_TYPE"

TRUE_FALSE_ANSWERS = ("true", "false")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a validation; `reason` is set only on failure."""

    ok: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.ok


VALID = ValidationResult(ok=True)


def _fail(reason: str) -> ValidationResult:
    return ValidationResult(ok=False, reason=reason)


def non_blank_options(options: list[str] | None) -> list[str]:
    """Options with blank entries dropped, original order kept."""
    return [option for option in options or [] if isinstance(option, str) and option.strip()]


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate(draft: QuestionDraft) -> ValidationResult:
    """Validate one question draft. Never raises."""
    if _is_blank(draft.text):
        return _fail(EMPTY_TEXT)

    try:
        question_type = QuestionType(draft.type)
    except ValueError:
        return _fail(UNKNOWN_TYPE)

    if isinstance(draft.points, bool) or not isinstance(draft.points, int) or draft.points <= 0:
        return _fail(INVALID_POINTS)

    correct = draft.correct_answer

    if question_type is QuestionType.MULTIPLE_CHOICE:
        options = non_blank_options(draft.options)
        if len(options) < MIN_CHOICE_OPTIONS:
            return _fail(INSUFFICIENT_OPTIONS)
        if _is_blank(correct) or correct not in options:
            return _fail(NO_CORRECT_ANSWER)
        return VALID

    if question_type is QuestionType.TRUE_FALSE:
        if not isinstance(correct, str) or correct.lower() not in TRUE_FALSE_ANSWERS:
            return _fail(NO_CORRECT_ANSWER)
        return VALID

    # short answer
    if _is_blank(correct):
        return _fail(NO_CORRECT_ANSWER)
    return VALID


def to_question_spec(draft: QuestionDraft, order_index: int) -> QuestionSpec:
    """
    Normalize a validated draft into a stored question.

    Multiple-choice options lose their blank entries, true/false answers are
    lower-cased and other types carry no options.
    """
    question_type = QuestionType(draft.type)
    correct = draft.correct_answer
    options: list[str] = []
    if question_type is QuestionType.MULTIPLE_CHOICE:
        options = non_blank_options(draft.options)
    elif question_type is QuestionType.TRUE_FALSE:
        correct = correct.lower()

    explanation = draft.explanation.strip() if draft.explanation else ""
    return QuestionSpec(
        text=draft.text.strip(),
        type=question_type.value,
        options=options,
        correct_answer=correct,
        explanation=explanation or None,
        points=draft.points,
        order_index=order_index,
    )
