"""Engine dependencies: store, lifecycle manager and live session registry."""
from typing import Annotated

from fastapi import Depends

from quiz_engine.dependencies.auth import get_identity_provider
from quiz_engine.services.attempt_service import AttemptLifecycleManager
from quiz_engine.services.identity import TokenIdentityProvider
from quiz_engine.services.session_registry import SessionRegistry, registry
from quiz_engine.services.sql_store import SqlAttemptStore, open_store


def get_store() -> SqlAttemptStore:
    return open_store()


def get_manager(
    store: Annotated[SqlAttemptStore, Depends(get_store)],
    provider: Annotated[TokenIdentityProvider, Depends(get_identity_provider)],
) -> AttemptLifecycleManager:
    return AttemptLifecycleManager(store, provider)


def get_registry() -> SessionRegistry:
    return registry
