"""Pydantic request/response schemas for OTP registration."""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

_TOKEN_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"


class _EmailBody(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.strip().lower()


class InitiateRegistrationRequest(_EmailBody):
    # bcrypt only reads the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72)
    username: str = Field(..., min_length=3, max_length=20, pattern=r"^[a-zA-Z0-9_]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone_number: str | None = None

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not re.fullmatch(r"\+?[\d\s\-()]{7,}", v):
            raise ValueError("Please provide a valid phone number")
        return v


class VerifyOTPRequest(_EmailBody):
    otp: str = Field(..., pattern=r"^\d{6}$")
    registration_token: str = Field(..., pattern=_TOKEN_PATTERN)


class ResendOTPRequest(_EmailBody):
    registration_token: str = Field(..., pattern=_TOKEN_PATTERN)


class InitiateRegistrationResponse(BaseModel):
    registration_token: str
    expires_in: int


class ResendOTPResponse(BaseModel):
    expires_in: int
