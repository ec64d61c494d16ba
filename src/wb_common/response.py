"""Unified API response wrapper.

All API endpoints return this format:
{
    "success": true,
    "message": "success",
    "data": { ... },     // null on error
    "error": null,       // error code on failure, e.g. "SESSION_EXPIRED"
    "errors": null,      // per-field detail on failure
    "timestamp": "...",
    "request_id": "..."
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    success: bool = True
    message: str = "success"
    data: Any = None
    error: str | None = None
    errors: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None, message: str = "success") -> ApiResponse:
    return ApiResponse(success=True, message=message, data=data)


def error_response(
    code: str, message: str, errors: dict[str, Any] | None = None
) -> ApiResponse:
    return ApiResponse(success=False, message=message, data=None, error=code, errors=errors)
