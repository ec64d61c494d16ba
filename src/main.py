"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.wb_bidding.api.router import router as bids_router
from src.wb_bidding.api.winners_router import router as winners_router
from src.wb_bidding.api.wishlist_router import router as wishlist_router
from src.wb_common.database import engine
from src.wb_common.errors import AppError, RateLimitExceededError
from src.wb_common.redis_client import close_redis
from src.wb_common.response import error_response
from src.wb_contact.api.router import router as contact_router
from src.wb_contact.application.service import ContactApplicationService
from src.wb_gateway.api.router import router as auth_router
from src.wb_gateway.api.users_router import router as users_router
from src.wb_gateway.middleware.request_log import RequestLogMiddleware, get_request_id
from src.wb_notify.dispatcher import build_dispatcher
from src.wb_product.api.router import router as products_router
from src.wb_registration.api.dependencies import build_registration_components
from src.wb_registration.api.router import router as registration_router

logger = logging.getLogger("wb.request")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, build caches + mailer, start the sweeper. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    mailer = build_dispatcher()
    app.state.registration = await build_registration_components(mailer)
    app.state.contact_service = ContactApplicationService(mailer)
    app.state.registration.sweeper.start()
    yield
    # Shutdown
    await app.state.registration.sweeper.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    errors: dict[str, Any] | None = None,
) -> JSONResponse:
    resp = error_response(code, message, errors)
    resp.request_id = get_request_id(request)
    return JSONResponse(status_code=status_code, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    response = _envelope(request, exc.http_status, exc.code, exc.message, exc.details)
    if isinstance(exc, RateLimitExceededError):
        response.headers["X-RateLimit-Remaining"] = "0"
        if exc.reset_at is not None:
            response.headers["X-RateLimit-Reset"] = exc.reset_at.isoformat()
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors[".".join(loc) or "request"] = err.get("msg", "invalid value")
    return _envelope(request, 400, "VALIDATION_ERROR", "Validation failed", errors)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(request, 500, "INTERNAL_ERROR", "Internal server error")


app.include_router(auth_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(registration_router, prefix="/api/v1")
app.include_router(products_router, prefix="/api/v1")
app.include_router(bids_router, prefix="/api/v1")
app.include_router(winners_router, prefix="/api/v1")
app.include_router(wishlist_router, prefix="/api/v1")
app.include_router(contact_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
