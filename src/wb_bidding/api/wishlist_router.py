"""Wishlist endpoints (the caller's own list).

GET    /wishlist                      — newest first, product populated
GET    /wishlist/check/{product_id}   — whether the caller has liked the product
POST   /wishlist                      — add an open product (idempotent)
DELETE /wishlist/{product_id}
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.application.schemas import AddWishlistRequest
from src.wb_bidding.application.service import WishlistApplicationService
from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.dependencies import get_current_user
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/wishlist", tags=["wishlist"])

_service = WishlistApplicationService()


def get_wishlist_service() -> WishlistApplicationService:
    return _service


ServiceDep = Annotated[WishlistApplicationService, Depends(get_wishlist_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
UserDep = Annotated[UserModel, Depends(get_current_user)]


@router.get("")
async def list_wishlist(
    request: Request, current_user: UserDep, service: ServiceDep, db: DbDep
) -> ApiResponse:
    items = await service.list_mine(db, str(current_user.id))
    resp = success_response([i.model_dump(mode="json") for i in items])
    resp.request_id = get_request_id(request)
    return resp


@router.get("/check/{product_id}")
async def check_wishlist(
    product_id: uuid.UUID,
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    result = await service.is_liked(db, str(product_id), str(current_user.id))
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    request: Request,
    body: AddWishlistRequest,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        entry = await service.add(db, body, str(current_user.id))
    resp = success_response(entry.model_dump(mode="json"), message="Added to wishlist")
    resp.request_id = get_request_id(request)
    return resp


@router.delete("/{product_id}")
async def remove_from_wishlist(
    product_id: uuid.UUID,
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        await service.remove(db, str(product_id), str(current_user.id))
    resp = success_response(message="Removed from wishlist")
    resp.request_id = get_request_id(request)
    return resp
