"""Auth API router: login, logout, me.

OTP registration lives in wb_registration (POST /auth/register/...).
All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.cookies import clear_auth_cookie, set_auth_cookie
from src.wb_gateway.auth.dependencies import get_current_user
from src.wb_gateway.auth.jwt_handler import access_token_max_age
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel
from src.wb_gateway.user.schemas import AuthResponse, LoginRequest, UserInfo
from src.wb_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    async with unit_of_work(db):
        user, token = await _service.login(body.email, body.password, db)

    set_auth_cookie(response, token)
    data = AuthResponse(
        token=token,
        expires_in=access_token_max_age(),
        user=UserInfo.from_model(user),
    )
    resp = success_response(data.model_dump(mode="json"), message="Login successful")
    resp.request_id = get_request_id(request)
    return resp


@router.get(
    "/logout",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Clear the auth cookie",
)
async def logout(request: Request, response: Response) -> ApiResponse:
    clear_auth_cookie(response)
    resp = success_response(message="Logged out successfully")
    resp.request_id = get_request_id(request)
    return resp


@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Current user profile",
)
async def me(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
) -> ApiResponse:
    resp = success_response(UserInfo.from_model(current_user).model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp
