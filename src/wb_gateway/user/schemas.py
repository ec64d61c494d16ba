"""Pydantic request/response schemas for wb_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.wb_common.enums import UserRole
from src.wb_gateway.user.db_models import UserModel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    """Public view of a user; never includes the password."""

    id: str
    username: str
    email: str
    first_name: str
    last_name: str
    phone_number: str | None = None
    role: str
    is_active: bool = True
    is_email_verified: bool
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, user: UserModel) -> "UserInfo":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            role=user.role,
            is_active=user.is_active,
            is_email_verified=user.is_email_verified,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class UpdateUserRequest(BaseModel):
    """Profile changes. ``role`` and ``is_active`` are admin-only."""

    model_config = ConfigDict(extra="forbid")

    username: str | None = Field(None, min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$")
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone_number: str | None = Field(None, max_length=32)
    role: UserRole | None = None
    is_active: bool | None = None


class UserListResponse(BaseModel):
    items: list[UserInfo]
    limit: int
    offset: int


class UsernameResponse(BaseModel):
    id: str
    username: str
