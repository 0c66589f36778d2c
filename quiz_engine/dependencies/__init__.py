"""FastAPI dependencies."""
from quiz_engine.dependencies.auth import (
    get_current_identity,
    get_identity_provider,
    get_optional_identity,
)
from quiz_engine.dependencies.engine import get_manager, get_registry, get_store

__all__ = [
    "get_current_identity",
    "get_identity_provider",
    "get_manager",
    "get_optional_identity",
    "get_registry",
    "get_store",
]
