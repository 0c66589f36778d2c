"""JSON payloads for quizzes, live sessions and scores."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from quiz_engine.models.quiz import (
    QuestionSpec,
    QuizDefinition,
    QuizScore,
    QuizStats,
    ScoreResult,
    ScoreSummary,
)
from quiz_engine.services.attempt_session import AttemptSession
from quiz_engine.services.scoring import score_band


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def question_to_payload(question: QuestionSpec, include_answer: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": question.id,
        "question_text": question.text,
        "question_type": question.type,
        "options": list(question.options),
        "points": question.points,
        "order_index": question.order_index,
    }
    if include_answer:
        payload["correct_answer"] = question.correct_answer
        payload["explanation"] = question.explanation
    return payload


def quiz_to_payload(
    quiz: QuizDefinition,
    include_answers: bool = False,
    with_questions: bool = True,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "subject": quiz.subject,
        "author_id": quiz.author_id,
        "time_limit": quiz.time_limit_minutes,
        "is_active": quiz.is_active,
        "created_at": _iso(quiz.created_at),
        "questions_count": len(quiz.questions),
        "max_score": quiz.max_score,
    }
    if with_questions:
        payload["questions"] = [
            question_to_payload(question, include_answers)
            for question in quiz.questions
        ]
    return payload


def stats_to_payload(stats: QuizStats) -> dict[str, Any]:
    return asdict(stats)


def session_to_payload(session: AttemptSession) -> dict[str, Any]:
    state = session.snapshot()
    payload = asdict(state)
    payload["started_at"] = _iso(state.started_at)
    payload["deadline"] = _iso(state.deadline)
    question = session.current_question
    payload["current_question"] = (
        question_to_payload(question, include_answer=False) if question else None
    )
    payload["can_proceed"] = session.can_proceed()
    payload["answered"] = [
        session.is_answered(index) for index in range(session.question_count)
    ]
    if session.result is not None:
        payload["result"] = result_to_payload(session.result, session.quiz)
    return payload


def result_to_payload(result: ScoreResult, quiz: QuizDefinition) -> dict[str, Any]:
    """Results screen: per-question review with the correct answers revealed."""
    review = []
    for answer in result.answers:
        question = quiz.question_by_id(answer.question_id)
        item = answer.to_dict()
        if question is not None:
            item["question_text"] = question.text
            item["correct_answer"] = question.correct_answer
            item["explanation"] = question.explanation
        review.append(item)
    return {
        "score": result.total,
        "max_score": result.max,
        "percentage": result.percentage,
        "band": score_band(result.percentage),
        "answers": review,
    }


def score_to_payload(item: QuizScore) -> dict[str, Any]:
    payload = asdict(item)
    payload["completed_at"] = _iso(item.completed_at)
    payload["band"] = score_band(item.percentage)
    return payload


def summary_to_payload(summary: ScoreSummary) -> dict[str, Any]:
    payload = asdict(summary)
    payload["last_attempt_at"] = _iso(summary.last_attempt_at)
    return payload
