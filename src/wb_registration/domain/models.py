"""Domain models for wb_registration — pure dataclasses, no I/O."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class RegistrationData:
    """Pending-signup payload captured at registration-initiate."""

    email: str
    password_hash: str
    otp_hash: str
    username: str
    first_name: str
    last_name: str
    phone_number: str | None = None


@dataclass
class RegistrationSession:
    token: str
    data: RegistrationData
    verification_attempts: int
    created_at: datetime
    expires_at: datetime

    @property
    def email(self) -> str:
        return self.data.email

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass
class RateLimitWindow:
    key: str
    count: int
    expires_at: datetime


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: datetime


@dataclass(frozen=True)
class RateLimitPolicy:
    """A named fixed-window limit applied to one identity (IP or email)."""

    purpose: str
    max_count: int
    window_seconds: int

    def key_for(self, identity: str) -> str:
        return f"{self.purpose}:{identity}"
