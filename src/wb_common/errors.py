"""Unified error codes and custom exceptions.

Every error carries a stable string code that clients can switch on:

  VALIDATION_ERROR     400  missing / malformed input
  INVALID_EMAIL        400  email does not match the registration session
  INVALID_OTP          400  OTP hash comparison failed
  UNAUTHORIZED         401  missing / invalid token, bad credentials
  FORBIDDEN            403  role or ownership check failed
  NOT_FOUND            404  missing entity
  SESSION_EXPIRED      404  registration session absent or expired
  DUPLICATE_ENTRY      409  unique field already taken
  RESOURCE_IN_USE      409  settlement records still reference the entity
  BIDDING_CLOSED       422  product no longer accepts bids
  RATE_LIMIT_EXCEEDED  429  fixed window exhausted
  INTERNAL_ERROR       500  persistence / delivery / unexpected failure
"""

from datetime import datetime
from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- 400 ---

class ValidationFailureError(AppError):
    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__("VALIDATION_ERROR", message, 400, details)


class EmailMismatchError(AppError):
    def __init__(self) -> None:
        super().__init__("INVALID_EMAIL", "Email does not match registration session", 400)


class InvalidOTPError(AppError):
    def __init__(self) -> None:
        super().__init__("INVALID_OTP", "Invalid or expired OTP", 400)


# --- 401 / 403 ---

class UnauthorizedError(AppError):
    def __init__(self, message: str = "Not authorized to access this route") -> None:
        super().__init__("UNAUTHORIZED", message, 401)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__("UNAUTHORIZED", "Invalid email or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__("FORBIDDEN", "Account is disabled", 403)


class ForbiddenError(AppError):
    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__("FORBIDDEN", message, 403)


# --- 404 ---

class NotFoundError(AppError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__("NOT_FOUND", f"{entity} not found: {entity_id}", 404)


class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: str) -> None:
        super().__init__("Bid", bid_id)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str) -> None:
        super().__init__("Product", product_id)


class WinnerNotFoundError(NotFoundError):
    def __init__(self, winner_id: str) -> None:
        super().__init__("Winner", winner_id)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__("User", user_id)


class SessionExpiredError(AppError):
    def __init__(self) -> None:
        super().__init__(
            "SESSION_EXPIRED", "Registration session expired. Please start again.", 404
        )


# --- 409 / 422 ---

class DuplicateEntryError(AppError):
    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(
            "DUPLICATE_ENTRY",
            "Email or username already exists",
            409,
            {field: f"{field} already exists" for field in fields},
        )


class ResourceInUseError(AppError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(
            "RESOURCE_IN_USE",
            f"{entity} {entity_id} is referenced by settlement records",
            409,
        )


class BiddingClosedError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__("BIDDING_CLOSED", f"Bidding is closed for product {product_id}", 422)


# --- 429 ---

class RateLimitExceededError(AppError):
    def __init__(self, message: str, reset_at: datetime | None = None) -> None:
        self.reset_at = reset_at
        super().__init__(
            "RATE_LIMIT_EXCEEDED",
            message,
            429,
            {"reset_at": reset_at.isoformat()} if reset_at else None,
        )


# --- 500 ---

class EmailDeliveryError(AppError):
    def __init__(self) -> None:
        super().__init__("INTERNAL_ERROR", "Failed to send OTP", 500)


class PersistenceFailureError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__("INTERNAL_ERROR", detail, 500)
