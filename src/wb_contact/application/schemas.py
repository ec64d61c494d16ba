"""Pydantic schemas for the contact form."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from src.wb_common.enums import ContactStatus
from src.wb_contact.domain.models import ContactMessage


class SubmitContactRequest(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)

    @field_validator("first_name", "last_name", "subject", "message", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class UpdateContactStatusRequest(BaseModel):
    status: ContactStatus


class ContactResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    subject: str
    message: str
    status: str
    user_id: str | None
    replied_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, c: ContactMessage) -> "ContactResponse":
        return cls(
            id=c.id,
            first_name=c.first_name,
            last_name=c.last_name,
            email=c.email,
            subject=c.subject,
            message=c.message,
            status=c.status,
            user_id=c.user_id,
            replied_at=c.replied_at,
            created_at=c.created_at,
            updated_at=c.updated_at,
        )


class SubmitContactResponse(BaseModel):
    id: str
    created_at: datetime


class ContactListResponse(BaseModel):
    items: list[ContactResponse]
    total: int
    limit: int
    offset: int
