"""Contact form endpoints.

POST  /contact                       — public (auth optional), 5 per email per hour
GET   /contact                       — admin: list, optional ?status=
GET   /contact/{contact_id}          — admin
PATCH /contact/{contact_id}/status   — admin: new / read / replied / archived
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_common.database import get_db_session, unit_of_work
from src.wb_common.enums import ContactStatus
from src.wb_common.response import ApiResponse, success_response
from src.wb_contact.application.schemas import SubmitContactRequest, UpdateContactStatusRequest
from src.wb_contact.application.service import ContactApplicationService
from src.wb_gateway.auth.dependencies import get_optional_user, require_admin
from src.wb_gateway.middleware.request_log import get_request_id
from src.wb_gateway.user.db_models import UserModel
from src.wb_registration.api.dependencies import apply_rate_limit_headers

router = APIRouter(prefix="/contact", tags=["contact"])


def get_contact_service(request: Request) -> ContactApplicationService:
    return request.app.state.contact_service


ServiceDep = Annotated[ContactApplicationService, Depends(get_contact_service)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
AdminDep = Annotated[UserModel, Depends(require_admin)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_contact(
    request: Request,
    response: Response,
    body: SubmitContactRequest,
    background_tasks: BackgroundTasks,
    service: ServiceDep,
    db: DbDep,
    current_user: Annotated[UserModel | None, Depends(get_optional_user)],
) -> ApiResponse:
    user_id = str(current_user.id) if current_user else None
    async with unit_of_work(db):
        result, limit = await service.submit(
            db, body, user_id, schedule=background_tasks.add_task
        )
    if limit is not None:
        apply_rate_limit_headers(response, limit)
    resp = success_response(
        result.model_dump(mode="json"),
        message="Thank you for contacting us. We will get back to you soon.",
    )
    resp.request_id = get_request_id(request)
    return resp


@router.get("")
async def list_contacts(
    request: Request,
    admin: AdminDep,
    service: ServiceDep,
    db: DbDep,
    status_filter: ContactStatus | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ApiResponse:
    result = await service.list_contacts(
        db, status_filter.value if status_filter else None, limit, offset
    )
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.get("/{contact_id}")
async def get_contact(
    contact_id: uuid.UUID,
    request: Request,
    admin: AdminDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    result = await service.get_contact(db, str(contact_id))
    resp = success_response(result.model_dump(mode="json"))
    resp.request_id = get_request_id(request)
    return resp


@router.patch("/{contact_id}/status")
async def update_contact_status(
    contact_id: uuid.UUID,
    request: Request,
    body: UpdateContactStatusRequest,
    admin: AdminDep,
    service: ServiceDep,
    db: DbDep,
) -> ApiResponse:
    async with unit_of_work(db):
        result = await service.update_status(db, str(contact_id), body.status.value)
    resp = success_response(result.model_dump(mode="json"), message="Status updated")
    resp.request_id = get_request_id(request)
    return resp
