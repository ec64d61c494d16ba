"""User domain service: login, verified-account creation, user management.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with unit_of_work(db)`.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import violated_constraint
from src.wb_common.datetime_utils import utc_now
from src.wb_common.enums import PasswordScheme, UserRole
from src.wb_common.errors import (
    AccountDisabledError,
    DuplicateEntryError,
    InvalidCredentialsError,
    ResourceInUseError,
    UserNotFoundError,
)
from src.wb_gateway.auth.jwt_handler import create_access_token
from src.wb_gateway.auth.password import (
    check_password,
    hash_password,
    load_stored_password,
    needs_migration,
)
from src.wb_gateway.user.db_models import UserModel

logger = logging.getLogger("wb.gateway")

_CONSTRAINT_FIELDS = {
    "uq_users_email": "email",
    "uq_users_username": "username",
}


@dataclass
class NewUser:
    """Fields for an account whose email has already been verified."""

    email: str
    username: str
    password_hash: str
    first_name: str
    last_name: str
    phone_number: str | None = None


def issue_token(user: UserModel) -> str:
    return create_access_token(
        str(user.id), user.role, user.email, user.username
    )


def _duplicate_fields(exc: IntegrityError) -> list[str]:
    constraint = violated_constraint(exc)
    if constraint in _CONSTRAINT_FIELDS:
        return [_CONSTRAINT_FIELDS[constraint]]
    message = str(exc.orig)
    fields = [f for f in ("email", "username") if f in message]
    return fields or ["email"]


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    async def find_conflicts(
        self, email: str, username: str, db: AsyncSession
    ) -> list[str]:
        """Return which of email / username are already taken."""
        result = await db.execute(
            select(UserModel).where(
                or_(UserModel.email == email, UserModel.username == username)
            )
        )
        conflicts: list[str] = []
        for user in result.scalars().all():
            if user.email == email and "email" not in conflicts:
                conflicts.append("email")
            if user.username == username and "username" not in conflicts:
                conflicts.append("username")
        return conflicts

    async def create_verified_user(self, new_user: NewUser, db: AsyncSession) -> UserModel:
        """Insert the durable user row at the end of OTP registration.

        A unique-constraint race (same email/username verified concurrently)
        surfaces as DuplicateEntryError naming the conflicting field.
        """
        user = UserModel(
            email=new_user.email,
            username=new_user.username,
            password_hash=new_user.password_hash,
            password_scheme=PasswordScheme.BCRYPT.value,
            first_name=new_user.first_name,
            last_name=new_user.last_name,
            phone_number=new_user.phone_number,
            role=UserRole.USER.value,
            is_active=True,
            is_email_verified=True,
            email_verified_at=utc_now(),
        )
        db.add(user)
        try:
            await db.flush()  # Get user.id (and hit UNIQUE constraints) without committing
        except IntegrityError as exc:
            fields = _duplicate_fields(exc)
            logger.warning("Duplicate user on registration: %s", ", ".join(fields))
            raise DuplicateEntryError(fields) from exc
        await db.refresh(user)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str]:
        """Authenticate user and return (user, access_token).

        Note: "User not found" and "Wrong password" both raise InvalidCredentialsError
        intentionally — prevents email enumeration attacks.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidCredentialsError()

        stored = load_stored_password(user.password_scheme, user.password_hash)
        if not check_password(password, stored):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        if needs_migration(stored):
            user.password_hash = hash_password(password)
            user.password_scheme = PasswordScheme.BCRYPT.value
            await db.flush()
            logger.info("Migrated legacy plaintext password for user %s", user.id)

        return user, issue_token(user)

    async def get_user(self, user_id: str, db: AsyncSession) -> UserModel:
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def list_users(self, db: AsyncSession, limit: int, offset: int) -> list[UserModel]:
        result = await db.execute(
            select(UserModel)
            .order_by(UserModel.created_at.desc(), UserModel.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def update_user(
        self, user_id: str, changes: dict[str, Any], db: AsyncSession
    ) -> UserModel:
        """Apply profile changes; a taken username raises DuplicateEntryError."""
        user = await self.get_user(user_id, db)
        for name, value in changes.items():
            setattr(user, name, value)
        try:
            await db.flush()
        except IntegrityError as exc:
            raise DuplicateEntryError(_duplicate_fields(exc)) from exc
        await db.refresh(user)
        return user

    async def delete_user(self, user_id: str, db: AsyncSession) -> None:
        """Delete an account. Users recorded as a product winner are kept."""
        user = await self.get_user(user_id, db)
        await db.delete(user)
        try:
            await db.flush()
        except IntegrityError as exc:
            logger.warning("Refused to delete user %s: %s", user_id, violated_constraint(exc))
            raise ResourceInUseError("User", user_id) from exc
        logger.info("Deleted user %s", user_id)
