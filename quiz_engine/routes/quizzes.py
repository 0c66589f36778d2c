"""Quiz authoring and catalogue endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from quiz_engine.dependencies import (
    get_current_identity,
    get_manager,
    get_optional_identity,
    get_registry,
)
from quiz_engine.models import QuizCreate
from quiz_engine.models.quiz import QuestionDraft
from quiz_engine.serialization import quiz_to_payload, session_to_payload, stats_to_payload
from quiz_engine.services.attempt_service import AttemptLifecycleManager
from quiz_engine.services.attempt_session import open_session
from quiz_engine.services.identity import Identity
from quiz_engine.services.quiz_builder import build_quiz
from quiz_engine.services.session_registry import SessionRegistry

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])

Manager = Annotated[AttemptLifecycleManager, Depends(get_manager)]


@router.get("")
async def list_quizzes(manager: Manager) -> dict[str, object]:
    """List active quizzes with their statistics."""
    items = await manager.list_active_quizzes_with_stats()
    quizzes = []
    for quiz, stats in items:
        payload = quiz_to_payload(quiz, with_questions=False)
        payload["stats"] = stats_to_payload(stats)
        quizzes.append(payload)
    return {"quizzes": quizzes}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_quiz(
    payload: QuizCreate,
    manager: Manager,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> dict[str, object]:
    """Create a quiz from a complete authoring payload."""
    questions = [
        QuestionDraft(
            text=item.question_text,
            type=item.question_type,
            options=list(item.options),
            correct_answer=item.correct_answer,
            explanation=item.explanation,
            points=item.points,
        )
        for item in payload.questions
    ]
    quiz = await build_quiz(
        manager,
        title=payload.title,
        subject=payload.subject,
        questions=questions,
        description=payload.description,
        time_limit_minutes=payload.time_limit,
    )
    return quiz_to_payload(quiz, include_answers=True)


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: str,
    manager: Manager,
    identity: Annotated[Identity | None, Depends(get_optional_identity)],
) -> dict[str, object]:
    """Get a quiz. Correct answers are only shown to its author."""
    quiz = await manager.get_quiz(quiz_id)
    is_author = identity is not None and identity.id == quiz.author_id
    return quiz_to_payload(quiz, include_answers=is_author)


@router.get("/{quiz_id}/stats")
async def get_quiz_stats(quiz_id: str, manager: Manager) -> dict[str, object]:
    stats = await manager.quiz_stats(quiz_id)
    return {"quiz_id": quiz_id, **stats_to_payload(stats)}


@router.delete("/{quiz_id}")
async def retire_quiz(
    quiz_id: str,
    manager: Manager,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> dict[str, object]:
    """Retire a quiz. Past attempts and scores are kept."""
    await manager.retire_quiz(quiz_id)
    return {"status": "retired", "quiz_id": quiz_id}


@router.post("/{quiz_id}/attempts", status_code=status.HTTP_201_CREATED)
async def start_attempt(
    quiz_id: str,
    manager: Manager,
    registry: Annotated[SessionRegistry, Depends(get_registry)],
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> dict[str, object]:
    """Start an attempt and open its live session."""
    session = await open_session(manager, quiz_id)
    registry.add(session)
    return session_to_payload(session)
