"""JWT token creation and verification.

HS256 (symmetric HMAC) with a single JWT_SECRET. Tokens carry the user id
(``sub``) and role so authorization checks need no extra lookup for the
role itself; the user row is still loaded to reject deleted/disabled users.

No token revocation: logout only clears the cookie. A token stays valid
until ``exp``.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.wb_common.errors import UnauthorizedError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(user_id: str, role: str, email: str, username: str) -> str:
    """Issue an access token (default: 24 h)."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "role": role,
        "email": email,
        "username": username,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def access_token_max_age() -> int:
    """Cookie max-age in seconds, aligned with token expiry."""
    return int(_ACCESS_EXPIRE.total_seconds())


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate an access token.

    Raises:
        UnauthorizedError: signature invalid, expired, or not an access token.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise UnauthorizedError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError()

    return payload
