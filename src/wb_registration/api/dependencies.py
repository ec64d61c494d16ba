"""Wiring for the volatile caches.

The session store and rate limiter are built once per process in the app
lifespan (``build_registration_components``) and kept on ``app.state``;
routes receive them through ``get_registration_service``. Tests override
that dependency with a service around fresh in-memory components.
"""

from dataclasses import dataclass

from fastapi import Request, Response

from config.settings import settings
from src.wb_common.enums import CacheBackend
from src.wb_common.redis_client import get_redis
from src.wb_notify.dispatcher import EmailDispatcher
from src.wb_registration.application.service import RegistrationService
from src.wb_registration.domain.models import RateLimitResult
from src.wb_registration.domain.rate_limiter import FixedWindowRateLimiter, RateLimiter
from src.wb_registration.domain.session_store import (
    InMemoryRegistrationSessionStore,
    RegistrationSessionStore,
)
from src.wb_registration.domain.sweeper import CacheSweeper
from src.wb_registration.infrastructure.redis_cache import (
    RedisFixedWindowRateLimiter,
    RedisRegistrationSessionStore,
)


@dataclass
class RegistrationComponents:
    sessions: RegistrationSessionStore
    limiter: RateLimiter
    service: RegistrationService
    sweeper: CacheSweeper


async def build_registration_components(mailer: EmailDispatcher) -> RegistrationComponents:
    sessions: RegistrationSessionStore
    limiter: RateLimiter
    if settings.CACHE_BACKEND == CacheBackend.REDIS:
        redis = await get_redis()
        sessions = RedisRegistrationSessionStore(redis)
        limiter = RedisFixedWindowRateLimiter(redis)
    else:
        sessions = InMemoryRegistrationSessionStore()
        limiter = FixedWindowRateLimiter()
    return RegistrationComponents(
        sessions=sessions,
        limiter=limiter,
        service=RegistrationService(sessions, limiter, mailer),
        sweeper=CacheSweeper(sessions, limiter, settings.CACHE_SWEEP_INTERVAL_SECONDS),
    )


def get_registration_service(request: Request) -> RegistrationService:
    return request.app.state.registration.service


def apply_rate_limit_headers(response: Response, result: RateLimitResult) -> None:
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = result.reset_at.isoformat()
