"""ContactApplicationService — contact-form intake and admin review.

The per-email submission limit is counted from the contacts table itself,
so it survives restarts and holds across instances. If that count cannot
be read the submission is let through and the failure logged.
"""

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wb_common.datetime_utils import Clock, utc_now
from src.wb_common.errors import NotFoundError, RateLimitExceededError
from src.wb_contact.application.schemas import (
    ContactListResponse,
    ContactResponse,
    SubmitContactRequest,
    SubmitContactResponse,
)
from src.wb_contact.domain.models import NewContactMessage, contact_policy
from src.wb_contact.domain.repository import ContactRepositoryProtocol
from src.wb_contact.infrastructure.persistence import ContactRepository
from src.wb_notify.dispatcher import EmailDispatcher, send_quietly
from src.wb_notify.templates import contact_confirmation_email, contact_notification_email
from src.wb_registration.domain.models import RateLimitPolicy, RateLimitResult

logger = logging.getLogger("wb.contact")

Scheduler = Callable[..., Any]


class ContactApplicationService:
    def __init__(
        self,
        mailer: EmailDispatcher,
        repo: ContactRepositoryProtocol | None = None,
        policy: RateLimitPolicy | None = None,
        admin_email: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._mailer = mailer
        self._repo: ContactRepositoryProtocol = repo or ContactRepository()
        self._policy = policy or contact_policy(
            settings.CONTACT_RATE_LIMIT, settings.CONTACT_RATE_WINDOW_SECONDS
        )
        self._admin_email = admin_email or settings.ADMIN_EMAIL
        self._clock = clock

    async def _check_rate_limit(self, db: AsyncSession, email: str) -> RateLimitResult | None:
        now = self._clock()
        window = timedelta(seconds=self._policy.window_seconds)
        try:
            async with db.begin_nested():
                recent = await self._repo.submissions_since(db, email, now - window)
        except SQLAlchemyError:
            logger.warning("Contact rate-limit lookup failed for %s; allowing", email, exc_info=True)
            return None

        reset_at = (recent.oldest_at or now) + window
        count = recent.count + 1
        result = RateLimitResult(
            allowed=count <= self._policy.max_count,
            remaining=max(0, self._policy.max_count - count),
            reset_at=reset_at,
        )
        if not result.allowed:
            logger.info("Contact form rate limit hit: email=%s count=%d", email, recent.count)
            raise RateLimitExceededError(
                "Too many contact form submissions. Please try again later.", reset_at
            )
        return result

    async def submit(
        self,
        db: AsyncSession,
        req: SubmitContactRequest,
        user_id: str | None = None,
        schedule: Scheduler | None = None,
    ) -> tuple[SubmitContactResponse, RateLimitResult | None]:
        """Store the message and queue both emails. Caller owns the transaction."""
        limit = await self._check_rate_limit(db, req.email)

        contact = await self._repo.create(
            db,
            NewContactMessage(
                first_name=req.first_name,
                last_name=req.last_name,
                email=req.email,
                subject=req.subject,
                message=req.message,
                user_id=user_id,
            ),
        )
        logger.info("Contact message stored: id=%s email=%s", contact.id, contact.email)

        if schedule is not None:
            schedule(
                send_quietly,
                self._mailer,
                contact_confirmation_email(contact.email, contact.first_name, contact.subject),
            )
            schedule(
                send_quietly,
                self._mailer,
                contact_notification_email(
                    self._admin_email,
                    contact.first_name,
                    contact.last_name,
                    contact.email,
                    contact.subject,
                    contact.message,
                ),
            )
        return SubmitContactResponse(id=contact.id, created_at=contact.created_at), limit

    async def get_contact(self, db: AsyncSession, contact_id: str) -> ContactResponse:
        contact = await self._repo.get(db, contact_id)
        if contact is None:
            raise NotFoundError("Contact message", contact_id)
        return ContactResponse.from_domain(contact)

    async def list_contacts(
        self, db: AsyncSession, status: str | None, limit: int, offset: int
    ) -> ContactListResponse:
        contacts, total = await self._repo.list_contacts(db, status, limit, offset)
        return ContactListResponse(
            items=[ContactResponse.from_domain(c) for c in contacts],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def update_status(
        self, db: AsyncSession, contact_id: str, status: str
    ) -> ContactResponse:
        contact = await self._repo.update_status(db, contact_id, status)
        if contact is None:
            raise NotFoundError("Contact message", contact_id)
        return ContactResponse.from_domain(contact)
