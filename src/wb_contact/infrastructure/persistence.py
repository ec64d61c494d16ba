"""ContactRepository — raw-SQL access to the contacts table.

Transaction ownership: the CALLER starts and commits via `async with unit_of_work(db)`.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.wb_contact.domain.models import ContactMessage, NewContactMessage, SubmissionWindow

_COLUMNS = """
    id, first_name, last_name, email, subject, message,
    status, user_id, replied_at, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO contacts (first_name, last_name, email, subject, message, user_id)
    VALUES (:first_name, :last_name, :email, :subject, :message, :user_id)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM contacts WHERE id = :contact_id")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS} FROM contacts
    WHERE (CAST(:status AS TEXT) IS NULL OR status = :status)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_SQL = text("""
    SELECT COUNT(*) FROM contacts
    WHERE (CAST(:status AS TEXT) IS NULL OR status = :status)
""")

# replied_at is stamped the first time a message moves to 'replied'.
_UPDATE_STATUS_SQL = text(f"""
    UPDATE contacts
    SET status = :status,
        replied_at = CASE
            WHEN :status = 'replied' AND replied_at IS NULL THEN NOW()
            ELSE replied_at
        END,
        updated_at = NOW()
    WHERE id = :contact_id
    RETURNING {_COLUMNS}
""")

# Served by idx_contacts_email_created_at
_WINDOW_SQL = text("""
    SELECT COUNT(*) AS count, MIN(created_at) AS oldest_at
    FROM contacts
    WHERE email = :email AND created_at >= :since
""")


def _row_to_contact(row: Any) -> ContactMessage:
    return ContactMessage(
        id=str(row.id),
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        subject=row.subject,
        message=row.message,
        status=row.status,
        user_id=str(row.user_id) if row.user_id is not None else None,
        replied_at=row.replied_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class ContactRepository:
    async def create(self, db: AsyncSession, new: NewContactMessage) -> ContactMessage:
        result = await db.execute(
            _INSERT_SQL,
            {
                "first_name": new.first_name,
                "last_name": new.last_name,
                "email": new.email,
                "subject": new.subject,
                "message": new.message,
                "user_id": new.user_id,
            },
        )
        return _row_to_contact(result.fetchone())

    async def get(self, db: AsyncSession, contact_id: str) -> ContactMessage | None:
        row = (await db.execute(_GET_SQL, {"contact_id": contact_id})).fetchone()
        return _row_to_contact(row) if row else None

    async def list_contacts(
        self, db: AsyncSession, status: str | None, limit: int, offset: int
    ) -> tuple[list[ContactMessage], int]:
        rows = (
            await db.execute(_LIST_SQL, {"status": status, "limit": limit, "offset": offset})
        ).fetchall()
        total = (await db.execute(_COUNT_SQL, {"status": status})).scalar_one()
        return [_row_to_contact(row) for row in rows], total

    async def update_status(
        self, db: AsyncSession, contact_id: str, status: str
    ) -> ContactMessage | None:
        row = (
            await db.execute(_UPDATE_STATUS_SQL, {"contact_id": contact_id, "status": status})
        ).fetchone()
        return _row_to_contact(row) if row else None

    async def submissions_since(
        self, db: AsyncSession, email: str, since: datetime
    ) -> SubmissionWindow:
        row = (await db.execute(_WINDOW_SQL, {"email": email, "since": since})).fetchone()
        return SubmissionWindow(count=row.count, oldest_at=row.oldest_at)
