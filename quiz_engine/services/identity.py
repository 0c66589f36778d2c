"""Identity providers: who is calling the engine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from jose import JWTError, jwt

from quiz_engine.config import ALGORITHM, SECRET_KEY
from quiz_engine.errors import Unauthenticated


@dataclass(frozen=True)
class Identity:
    id: str
    display_name: str = ""


class IdentityProvider(Protocol):
    def current_user(self) -> Identity | None: ...


class StaticIdentityProvider:
    """Always answers with the same identity (or with nobody)."""

    def __init__(self, identity: Identity | None) -> None:
        self._identity = identity

    def current_user(self) -> Identity | None:
        return self._identity


def verify_token(token: str, secret_key: str = SECRET_KEY) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded token payload or None if invalid.
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


class TokenIdentityProvider:
    """Identity taken from a bearer token issued by the identity service."""

    def __init__(self, token: str | None, secret_key: str = SECRET_KEY) -> None:
        self._identity: Identity | None = None
        if not token:
            return
        payload = verify_token(token, secret_key)
        if payload is None:
            return
        subject = payload.get("sub")
        if subject is None:
            return
        self._identity = Identity(
            id=str(subject),
            display_name=str(payload.get("name") or ""),
        )

    def current_user(self) -> Identity | None:
        return self._identity


def require_user(provider: IdentityProvider) -> Identity:
    """Current identity or Unauthenticated."""
    identity = provider.current_user()
    if identity is None:
        raise Unauthenticated("Sign-in required")
    return identity
