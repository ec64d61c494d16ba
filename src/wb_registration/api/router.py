"""OTP registration endpoints.

POST /auth/register/initiate     — park signup, email OTP
POST /auth/register/verify-otp   — check OTP, create user, set auth cookie
POST /auth/register/resend-otp   — new OTP for a live session
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import get_db_session
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.cookies import set_auth_cookie
from src.wb_gateway.auth.jwt_handler import access_token_max_age
from src.wb_gateway.middleware.request_log import get_client_ip, get_request_id
from src.wb_gateway.user.schemas import AuthResponse, UserInfo
from src.wb_registration.api.dependencies import (
    apply_rate_limit_headers,
    get_registration_service,
)
from src.wb_registration.application.schemas import (
    InitiateRegistrationRequest,
    ResendOTPRequest,
    VerifyOTPRequest,
)
from src.wb_registration.application.service import RegistrationService

router = APIRouter(prefix="/auth/register", tags=["registration"])

ServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]


@router.post("/initiate", status_code=status.HTTP_200_OK, response_model=ApiResponse)
async def initiate(
    request: Request,
    response: Response,
    body: InitiateRegistrationRequest,
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result, limit = await service.initiate(body, get_client_ip(request), db)
    apply_rate_limit_headers(response, limit)
    resp = success_response(result.model_dump(), message="OTP sent to your email")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/verify-otp", status_code=status.HTTP_200_OK, response_model=ApiResponse)
async def verify_otp(
    request: Request,
    response: Response,
    body: VerifyOTPRequest,
    background_tasks: BackgroundTasks,
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    user, token = await service.verify(
        body.email,
        body.otp,
        body.registration_token,
        db,
        schedule=background_tasks.add_task,
    )
    set_auth_cookie(response, token)
    data = AuthResponse(token=token, expires_in=access_token_max_age(), user=UserInfo.from_model(user))
    resp = success_response(data.model_dump(mode="json"), message="Registration successful")
    resp.request_id = get_request_id(request)
    return resp


@router.post("/resend-otp", status_code=status.HTTP_200_OK, response_model=ApiResponse)
async def resend_otp(
    request: Request,
    response: Response,
    body: ResendOTPRequest,
    service: ServiceDep,
) -> ApiResponse:
    result, limit = await service.resend(body.email, body.registration_token)
    apply_rate_limit_headers(response, limit)
    resp = success_response(result.model_dump(), message="OTP resent successfully")
    resp.request_id = get_request_id(request)
    return resp
