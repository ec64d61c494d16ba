"""Domain models for wb_contact."""

from dataclasses import dataclass
from datetime import datetime

from src.wb_registration.domain.models import RateLimitPolicy


@dataclass
class ContactMessage:
    id: str
    first_name: str
    last_name: str
    email: str
    subject: str
    message: str
    status: str          # ContactStatus value
    user_id: str | None
    replied_at: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass
class NewContactMessage:
    first_name: str
    last_name: str
    email: str
    subject: str
    message: str
    user_id: str | None = None


@dataclass
class SubmissionWindow:
    """Contact rows for one email inside the current rate-limit window."""

    count: int
    oldest_at: datetime | None


def contact_policy(max_count: int, window_seconds: int) -> RateLimitPolicy:
    return RateLimitPolicy("contact", max_count, window_seconds)
