import pytest

from quiz_engine.models import quiz as quiz_models
from quiz_engine.models.quiz import QuestionSpec, QuizDefinition, ScoreResult
from quiz_engine.services.scoring import is_answer_correct, percentage, score, score_band


def _quiz(*questions: QuestionSpec) -> QuizDefinition:
    return QuizDefinition(
        id="quiz-1",
        title="Sample",
        description="",
        subject="Testing",
        author_id="author-1",
        questions=list(questions),
    )


def _question(question_id: str, type_: str, correct: str, points: int = 10, **kwargs) -> QuestionSpec:
    return QuestionSpec(
        id=question_id,
        text=f"Question {question_id}",
        type=type_,
        correct_answer=correct,
        points=points,
        order_index=kwargs.pop("order_index", 0),
        **kwargs,
    )


def test_true_false_full_and_zero_marks() -> None:
    quiz = _quiz(_question("q1", "true_false", "true"))

    right = score(quiz, {"q1": "true"})
    assert (right.total, right.max, right.percentage) == (10, 10, 100)

    wrong = score(quiz, {"q1": "false"})
    assert (wrong.total, wrong.max, wrong.percentage) == (0, 10, 0)
    assert wrong.answers[0].points_earned == 0
    assert wrong.answers[0].is_correct is False


def test_short_answer_ignores_case_and_surrounding_spaces() -> None:
    question = _question("q1", "short_answer", "paris")
    assert is_answer_correct(question, " Paris ")
    assert not is_answer_correct(question, "Pari s")


def test_multiple_choice_is_exact() -> None:
    question = _question("q1", "multiple_choice", "Paris", options=["Paris", "Rome"])
    assert is_answer_correct(question, "Paris")
    assert not is_answer_correct(question, "paris")


def test_missing_answers_score_as_empty_strings() -> None:
    quiz = _quiz(
        _question("q1", "multiple_choice", "A", options=["A", "B"], order_index=0),
        _question("q2", "short_answer", "x", points=5, order_index=1),
    )
    result = score(quiz, {"q1": "A"})
    assert [answer.question_id for answer in result.answers] == ["q1", "q2"]
    assert result.answers[1].user_answer == ""
    assert result.total == 10
    assert result.max == 15
    assert result.percentage == 67


def test_score_never_exceeds_max() -> None:
    quiz = _quiz(
        _question("q1", "true_false", "false", points=3),
        _question("q2", "short_answer", "yes", points=7),
    )
    result = score(quiz, {"q1": "false", "q2": "YES"})
    assert result.total == result.max == 10


@pytest.mark.parametrize(
    ("total", "max_score", "expected"),
    [(0, 0, 0), (1, 2, 50), (1, 3, 33), (2, 3, 67), (1, 8, 13), (5, 200, 3), (10, 10, 100)],
)
def test_percentage_rounds_half_up(total: int, max_score: int, expected: int) -> None:
    assert percentage(total, max_score) == expected


def test_score_result_percentage_uses_shared_rounding() -> None:
    assert percentage is quiz_models.percentage
    assert ScoreResult(answers=[], total=1, max=8).percentage == 13
    assert ScoreResult(answers=[], total=0, max=0).percentage == 0


def test_score_band_thresholds() -> None:
    assert score_band(100) == "excellent"
    assert score_band(80) == "excellent"
    assert score_band(79) == "good"
    assert score_band(60) == "good"
    assert score_band(59) == "keep_practicing"
