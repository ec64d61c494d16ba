"""FastAPI dependencies: get_current_user, get_optional_user, require_admin.

Usage in any protected router:
    from src.wb_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...

The token is taken from ``Authorization: Bearer`` first and falls back to
the httpOnly auth cookie set at login / registration.
"""

import uuid

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wb_common.database import get_db_session
from src.wb_common.enums import UserRole
from src.wb_common.errors import AccountDisabledError, ForbiddenError, UnauthorizedError
from src.wb_gateway.auth.jwt_handler import decode_token
from src.wb_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def _extract_token(request: Request, bearer: str | None) -> str | None:
    if bearer:
        return bearer
    return request.cookies.get(settings.AUTH_COOKIE_NAME) or None


async def _load_user(token: str, db: AsyncSession) -> UserModel:
    payload = decode_token(token)
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise UnauthorizedError() from None

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedError("User not found")

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Validate the JWT and return the UserModel.

    Raises UnauthorizedError (401) if the token is missing, invalid, expired,
    or names an unknown user; AccountDisabledError (403) if the account is disabled.
    """
    token = _extract_token(request, bearer)
    if not token:
        raise UnauthorizedError()
    return await _load_user(token, db)


async def get_optional_user(
    request: Request,
    bearer: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel | None:
    """Like get_current_user, but anonymous or invalid callers yield None."""
    token = _extract_token(request, bearer)
    if not token:
        return None
    try:
        return await _load_user(token, db)
    except (UnauthorizedError, AccountDisabledError):
        return None


async def require_admin(
    current_user: UserModel = Depends(get_current_user),
) -> UserModel:
    """Verify the caller holds the admin role."""
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError(f"User role {current_user.role} is not authorized to access this route")
    return current_user


def ensure_owner_or_admin(current_user: UserModel, owner_id: str | None) -> None:
    """Raise ForbiddenError unless the caller owns the resource or is an admin."""
    if current_user.role == UserRole.ADMIN:
        return
    if owner_id is None or str(current_user.id) != str(owner_id):
        raise ForbiddenError()
