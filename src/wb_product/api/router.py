"""wb_product REST endpoints.

POST   /products                — create (caller becomes owner)
GET    /products                — list, open products first by default
GET    /products/{product_id}   — detail
PUT    /products/{product_id}   — partial update (owner or admin)
DELETE /products/{product_id}   — delete (owner or admin)
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.response import ApiResponse, success_response
from src.wb_gateway.auth.dependencies import get_current_user
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel
from src.wb_product.application.schemas import CreateProductRequest, UpdateProductRequest
from src.wb_product.application.service import ProductApplicationService

router = APIRouter(prefix="/products", tags=["products"])

_service = ProductApplicationService()


def get_product_service() -> ProductApplicationService:
    return _service


ServiceDep = Annotated[ProductApplicationService, Depends(get_product_service)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    body: CreateProductRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    async with unit_of_work(db):
        result = await service.create_product(db, body, str(current_user.id))
    resp = success_response(result.model_dump(mode="json"), message="Product created")
    resp.request_id = get_request_id(request)
    return resp


@router.get("")
async def list_products(
    request: Request,
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    include_closed: bool = Query(True),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    result = await service.list_products(db, include_closed, limit, offset)
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{product_id}")
async def get_product(
    product_id: uuid.UUID,
    request: Request,
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await service.get_product(db, str(product_id))
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.put("/{product_id}")
async def update_product(
    product_id: uuid.UUID,
    request: Request,
    body: UpdateProductRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    async with unit_of_work(db):
        result = await service.update_product(db, str(product_id), body, current_user)
    resp = success_response(result.model_dump(mode="json"), message="Product updated")
    resp.request_id = get_request_id(request)
    return resp


@router.delete("/{product_id}")
async def delete_product(
    product_id: uuid.UUID,
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    service: ServiceDep,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    async with unit_of_work(db):
        await service.delete_product(db, str(product_id), current_user)
    resp = success_response(message="Product deleted successfully")
    resp.request_id = get_request_id(request)
    return resp
