"""Bid endpoints.

POST   /bids                          — place a bid (settles the product when its target is hit)
GET    /bids/{bid_id}                 — single bid
GET    /bids/product/{product_id}     — bids on a product, highest amount first
GET    /bids/product/{product_id}/highest
GET    /bids/user/{user_id}           — a user's bids, newest first (self or admin)
DELETE /bids/{bid_id}                 — bidder or admin; winning bids stay
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_bidding.application.schemas import PlaceBidRequest
from src.wb_bidding.application.service import BidApplicationService
from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.dependencies import get_current_user
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel

router = APIRouter(prefix="/bids", tags=["bids"])

_service = BidApplicationService()


def get_bid_service() -> BidApplicationService:
    return _service


ServiceDep = Annotated[BidApplicationService, Depends(get_bid_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
UserDep = Annotated[UserModel, Depends(get_current_user)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_bid(
    request: Request,
    body: PlaceBidRequest,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        result = await service.place_bid(db, body, str(current_user.id))
    message = "Bid placed; bidding closed" if result.is_bidding_complete else "Bid placed"
    resp = success_response(result.model_dump(mode="json"), message=message)
    resp.request_id = get_request_id(request)
    return resp


@router.get("/product/{product_id}")
async def get_bids_for_product(
    product_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    items = await service.get_bids_for_product(db, str(product_id))
    resp = success_response([i.model_dump(mode="json") for i in items])
    resp.request_id = get_request_id(request)
    return resp


@router.get("/product/{product_id}/highest")
async def get_highest_bid(
    product_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    bid = await service.get_highest_bid(db, str(product_id))
    resp = success_response(bid.model_dump(mode="json") if bid else None)
    resp.request_id = get_request_id(request)
    return resp


@router.get("/user/{user_id}")
async def get_bids_by_user(
    user_id: uuid.UUID,
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    items = await service.get_bids_by_user(db, str(user_id), current_user)
    resp = success_response([i.model_dump(mode="json") for i in items])
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{bid_id}")
async def get_bid(
    bid_id: uuid.UUID, request: Request, service: ServiceDep, db: DbDep
) -> ApiResponse:
    bid = await service.get_bid(db, str(bid_id))
    resp = success_response(bid.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.delete("/{bid_id}")
async def delete_bid(
    bid_id: uuid.UUID,
    request: Request,
    current_user: UserDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        await service.delete_bid(db, str(bid_id), current_user)
    resp = success_response(message="Bid deleted successfully")
    resp.request_id = get_request_id(request)
    return resp
