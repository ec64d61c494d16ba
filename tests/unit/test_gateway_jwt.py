"""Unit tests for JWT handler."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.wb_common.errors import UnauthorizedError
from src.wb_gateway.auth.jwt_handler import (
    access_token_max_age,
    create_access_token,
    decode_token,
)


def test_access_token_contains_correct_claims() -> None:
    token = create_access_token("user-123", "admin", "a@example.com", "alice")
    payload = jwt.get_unverified_claims(token)
    assert payload["sub"] == "user-123"
    assert payload["role"] == "admin"
    assert payload["email"] == "a@example.com"
    assert payload["username"] == "alice"
    assert payload["type"] == "access"


def test_decode_valid_access_token() -> None:
    token = create_access_token("user-abc", "user", "b@example.com", "bob")
    payload = decode_token(token)
    assert payload["sub"] == "user-abc"


def test_token_signed_with_other_secret_raises_unauthorized() -> None:
    token = jwt.encode(
        {"sub": "u", "type": "access"}, "some-other-secret", algorithm=settings.JWT_ALGORITHM
    )
    with pytest.raises(UnauthorizedError):
        decode_token(token)


def test_expired_token_raises_unauthorized() -> None:
    past = datetime.now(UTC) - timedelta(hours=2)
    token = jwt.encode(
        {"sub": "u", "type": "access", "iat": past, "exp": past + timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(UnauthorizedError):
        decode_token(token)


def test_wrong_token_type_raises_unauthorized() -> None:
    token = jwt.encode(
        {"sub": "u", "type": "refresh"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
    )
    with pytest.raises(UnauthorizedError):
        decode_token(token)


def test_cookie_max_age_matches_expiry() -> None:
    assert access_token_max_age() == settings.JWT_EXPIRE_MINUTES * 60
