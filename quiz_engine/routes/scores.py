"""Score history endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends

from quiz_engine.dependencies import get_current_identity, get_manager
from quiz_engine.serialization import score_to_payload, summary_to_payload
from quiz_engine.services.attempt_service import AttemptLifecycleManager, summarize_scores
from quiz_engine.services.identity import Identity

router = APIRouter(prefix="/api/scores", tags=["scores"])


@router.get("")
async def list_scores(
    manager: Annotated[AttemptLifecycleManager, Depends(get_manager)],
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> dict[str, object]:
    """Completed attempts of the caller, newest first, with a summary."""
    scores = await manager.list_user_scores(identity.id)
    return {
        "scores": [score_to_payload(item) for item in scores],
        "summary": summary_to_payload(summarize_scores(scores)),
    }
