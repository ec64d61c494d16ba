"""Winner endpoints.

Winner rows are written by settlement; POST here is an admin-only manual
audit entry and is refused when the product already has a winner.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.application.schemas import CreateWinnerRequest
from src.wb_bidding.application.service import WinnerApplicationService
from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.dependencies import require_admin
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/winners", tags=["winners"])

_service = WinnerApplicationService()


def get_winner_service() -> WinnerApplicationService:
    return _service


ServiceDep = Annotated[WinnerApplicationService, Depends(get_winner_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.get("")
async def list_winners(
    request: Request,
    service: ServiceDep,
    db: DbDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    result = await service.list_winners(db, limit, offset)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_winner(
    request: Request,
    body: CreateWinnerRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        winner = await service.create_winner(db, body)
    resp = success_response(winner.model_dump(mode="json"), message="Winner recorded")
    resp.request_id = get_request_id(request)
    return resp


@router.get("/user/{user_id}")
async def get_winners_by_user(
    user_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    items = await service.get_winners_by_user(db, str(user_id))
    resp = success_response([w.model_dump(mode="json") for w in items])
    resp.request_id = get_request_id(request)
    return resp


@router.get("/product/{product_id}")
async def get_winner_by_product(
    product_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    winner = await service.get_winner_by_product(db, str(product_id))
    resp = success_response(winner.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{winner_id}")
async def get_winner(
    winner_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    winner = await service.get_winner(db, str(winner_id))
    resp = success_response(winner.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp
