"""User management router.

GET    /users                      — admin: paginated list
GET    /users/{user_id}            — self or admin
GET    /users/{user_id}/username   — public display-name lookup
PUT    /users/{user_id}            — self or admin; role / is_active admin only
DELETE /users/{user_id}            — admin; refused for recorded winners
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.enums import UserRole
from src.wb_common.errors import ForbiddenError
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.dependencies import (
    ensure_owner_or_admin,
    get_current_user,
    require_admin,
)
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel
from src.wb_gateway.user.schemas import (
    UpdateUserRequest,
    UserInfo,
    UserListResponse,
    UsernameResponse,
)
from src.wb_gateway.user.service import UserService

router = APIRouter(prefix="/users", tags=["users"])

_service = UserService()

_ADMIN_ONLY_FIELDS = ("role", "is_active")


def get_user_service() -> UserService:
    return _service


ServiceDep = Annotated[UserService, Depends(get_user_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("", response_model=ApiResponse, summary="List users (admin)")
async def list_users(
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    service: ServiceDep,
    db: DbDep,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    users = await service.list_users(db, limit, offset)
    data = UserListResponse(
        items=[UserInfo.from_model(u) for u in users], limit=limit, offset=offset
    )
    resp = success_response(data.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{user_id}/username", response_model=ApiResponse, summary="Username lookup")
async def get_username(
    user_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    user = await service.get_user(str(user_id), db)
    data = UsernameResponse(id=str(user.id), username=user.username)
    resp = success_response(data.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{user_id}", response_model=ApiResponse, summary="User profile")
async def get_user(
    user_id: uuid.UUID,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    ensure_owner_or_admin(current_user, str(user_id))
    user = await service.get_user(str(user_id), db)
    resp = success_response(UserInfo.from_model(user).model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.put("/{user_id}", response_model=ApiResponse, summary="Update a user")
async def update_user(
    user_id: uuid.UUID,
    request: Request,
    body: UpdateUserRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    ensure_owner_or_admin(current_user, str(user_id))
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if current_user.role != UserRole.ADMIN and any(f in changes for f in _ADMIN_ONLY_FIELDS):
        raise ForbiddenError("Only admins may change role or account status")
    if "role" in changes:
        changes["role"] = changes["role"].value

    async with unit_of_work(db):
        user = await service.update_user(str(user_id), changes, db)
    resp = success_response(
        UserInfo.from_model(user).model_dump(mode="json"), message="User updated"
    )
    resp.request_id = get_request_id(request)
    return resp


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Delete a user (admin)",
)
async def delete_user(
    user_id: uuid.UUID,
    request: Request,
    admin: Annotated[UserModel, Depends(require_admin)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        await service.delete_user(str(user_id), db)
    resp = success_response(message="User deleted")
    resp.request_id = get_request_id(request)
    return resp
