"""Scoring engine: maps a quiz and raw answers to per-question correctness."""
from collections.abc import Mapping

from quiz_engine.models.quiz import (
    QuestionSpec,
    QuestionType,
    QuizAnswer,
    QuizDefinition,
    ScoreResult,
    percentage,
)

EXCELLENT_THRESHOLD = 80
GOOD_THRESHOLD = 60


def is_answer_correct(question: QuestionSpec, user_answer: str) -> bool:
    """Check one answer against the question's stored correct answer."""
    if question.type == QuestionType.SHORT_ANSWER.value:
        return user_answer.strip().lower() == question.correct_answer.strip().lower()
    if question.type == QuestionType.TRUE_FALSE.value:
        # Stored answers are lower-cased at authoring time; the player sends lower case
        return user_answer == question.correct_answer.lower()
    return user_answer == question.correct_answer


def score(quiz: QuizDefinition, raw_answers: Mapping[str, str]) -> ScoreResult:
    """
    Score every question of the quiz, in order.

    Missing answers count as the empty string. Pure and deterministic.
    """
    answers: list[QuizAnswer] = []
    for question in quiz.questions:
        user_answer = raw_answers.get(question.id) or ""
        correct = is_answer_correct(question, user_answer)
        answers.append(
            QuizAnswer(
                question_id=question.id,
                user_answer=user_answer,
                is_correct=correct,
                points_earned=question.points if correct else 0,
            )
        )

    total = sum(answer.points_earned for answer in answers)
    return ScoreResult(answers=answers, total=total, max=quiz.max_score)


def score_band(value: int) -> str:
    """Coarse label for a percentage."""
    if value >= EXCELLENT_THRESHOLD:
        return "excellent"
    if value >= GOOD_THRESHOLD:
        return "good"
    return "keep_practicing"
