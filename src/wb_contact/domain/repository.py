from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_contact.domain.models import ContactMessage, NewContactMessage, SubmissionWindow


class ContactRepositoryProtocol(Protocol):
    async def create(self, db: AsyncSession, new: NewContactMessage) -> ContactMessage: ...

    async def get(self, db: AsyncSession, contact_id: str) -> ContactMessage | None: ...

    async def list_contacts(
        self, db: AsyncSession, status: str | None, limit: int, offset: int
    ) -> tuple[list[ContactMessage], int]:
        """One page plus the total row count for the filter."""
        ...

    async def update_status(
        self, db: AsyncSession, contact_id: str, status: str
    ) -> ContactMessage | None: ...

    async def submissions_since(
        self, db: AsyncSession, email: str, since: datetime
    ) -> SubmissionWindow: ...
