"""Periodic eviction of expired sessions and rate-limit windows.

Started and stopped by the application lifespan. Expiry is already enforced
lazily on read, so a missed sweep only delays freeing memory.
"""

import asyncio
import contextlib
import logging

from src.wb_registration.domain.rate_limiter import RateLimiter
from src.wb_registration.domain.session_store import RegistrationSessionStore

logger = logging.getLogger("wb.registration")


class CacheSweeper:
    def __init__(
        self,
        sessions: RegistrationSessionStore,
        limiter: RateLimiter,
        interval_seconds: float,
    ) -> None:
        self._sessions = sessions
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    async def sweep_once(self) -> tuple[int, int]:
        sessions = await self._sessions.sweep_expired()
        windows = await self._limiter.sweep_expired()
        if sessions or windows:
            logger.debug("Swept %d sessions, %d rate-limit windows", sessions, windows)
        return sessions, windows

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("Cache sweep failed")

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="wb-cache-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
