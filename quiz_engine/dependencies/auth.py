"""Authentication dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quiz_engine.services.identity import Identity, TokenIdentityProvider, require_user

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


def get_identity_provider(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TokenIdentityProvider:
    """Identity provider for this request; anonymous when no token is sent."""
    token = credentials.credentials if credentials is not None else None
    return TokenIdentityProvider(token)


def get_current_identity(
    provider: Annotated[TokenIdentityProvider, Depends(get_identity_provider)],
) -> Identity:
    """Get the current authenticated identity.

    Raises:
        Unauthenticated: no token, or the token does not verify.
    """
    return require_user(provider)


def get_optional_identity(
    provider: Annotated[TokenIdentityProvider, Depends(get_identity_provider)],
) -> Identity | None:
    """Get the current identity if a valid token was sent."""
    return provider.current_user()
