"""Quiz player endpoints for a live attempt session."""
from typing import Annotated

from fastapi import APIRouter, Depends

from quiz_engine.dependencies import get_current_identity, get_registry
from quiz_engine.models import AnswerUpdate, NavigateRequest, SubmitRequest
from quiz_engine.serialization import session_to_payload
from quiz_engine.services.attempt_session import AttemptSession
from quiz_engine.services.identity import Identity
from quiz_engine.services.session_registry import SessionRegistry

router = APIRouter(prefix="/api/attempts/{attempt_id}", tags=["attempts"])

Registry = Annotated[SessionRegistry, Depends(get_registry)]


def get_session(
    attempt_id: str,
    registry: Registry,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> AttemptSession:
    return registry.get(attempt_id, identity.id)


LiveSession = Annotated[AttemptSession, Depends(get_session)]


def _respond(session: AttemptSession, registry: SessionRegistry, **extra) -> dict[str, object]:
    payload = {**session_to_payload(session), **extra}
    # Results are handed out once, then the session is dropped
    registry.release_finished(session)
    return payload


@router.get("")
async def get_attempt(session: LiveSession, registry: Registry) -> dict[str, object]:
    """Current state of the player."""
    return _respond(session, registry)


@router.put("/answers/{question_id}")
async def set_answer(
    question_id: str,
    payload: AnswerUpdate,
    session: LiveSession,
    registry: Registry,
) -> dict[str, object]:
    session.set_answer(question_id, payload.value)
    return _respond(session, registry)


@router.post("/navigate")
async def navigate(
    payload: NavigateRequest, session: LiveSession, registry: Registry
) -> dict[str, object]:
    """Move to the next, previous or a specific question."""
    if payload.action == "next":
        moved = session.next()
    elif payload.action == "previous":
        moved = session.previous()
    else:
        moved = payload.index is not None and session.go_to(payload.index)
    return _respond(session, registry, moved=moved)


@router.post("/submit")
async def submit_attempt(
    payload: SubmitRequest, session: LiveSession, registry: Registry
) -> dict[str, object]:
    """Submit the attempt.

    Without `confirmed` the request is answered as a declined prompt and
    nothing is sent. `retry` is only accepted after time ran out and the
    automatic submission failed. Once results are returned the session is
    closed.
    """
    if payload.retry:
        result = await session.retry_submit()
    else:
        result = await session.submit(confirm=lambda: payload.confirmed)
    return _respond(session, registry, submitted=result is not None)


@router.delete("")
async def close_attempt(
    attempt_id: str,
    registry: Registry,
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> dict[str, object]:
    """Close the player; an unfinished attempt stays incomplete."""
    session = registry.close(attempt_id, identity.id)
    return {"status": "closed", "attempt_id": attempt_id, "state": session.status.value}
