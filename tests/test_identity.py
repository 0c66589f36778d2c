import pytest
from jose import jwt

from quiz_engine.config import ALGORITHM, SECRET_KEY
from quiz_engine.errors import Unauthenticated
from quiz_engine.services.identity import (
    Identity,
    StaticIdentityProvider,
    TokenIdentityProvider,
    require_user,
    verify_token,
)


def _token(claims: dict, secret: str = SECRET_KEY) -> str:
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def test_token_provider_reads_subject_and_name() -> None:
    provider = TokenIdentityProvider(_token({"sub": "42", "name": "Ada"}))
    assert provider.current_user() == Identity(id="42", display_name="Ada")


def test_token_provider_rejects_bad_tokens() -> None:
    assert TokenIdentityProvider(None).current_user() is None
    assert TokenIdentityProvider("not-a-jwt").current_user() is None
    assert TokenIdentityProvider(_token({"sub": "42"}, secret="other")).current_user() is None
    assert TokenIdentityProvider(_token({"name": "no subject"})).current_user() is None


def test_verify_token() -> None:
    assert verify_token(_token({"sub": "7"}))["sub"] == "7"
    assert verify_token("garbage") is None


def test_require_user() -> None:
    identity = Identity(id="u1")
    assert require_user(StaticIdentityProvider(identity)) is identity
    with pytest.raises(Unauthenticated):
        require_user(StaticIdentityProvider(None))
