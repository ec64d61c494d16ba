"""Fixed-window rate limiter.

check(key, max_count, window_seconds):
  - no window for key, or window expired  → start fresh (count=0, expires_at=now+window)
  - count += 1, always, even on the call that exceeds the limit
  - allowed = count <= max_count

So with max_count=3 the 4th call in a window is the first rejected one, and
every later call in that window stays rejected.
"""

from typing import Protocol

from config.settings import settings
from src.wb_common.datetime_utils import Clock, seconds_from, utc_now
from src.wb_registration.domain.models import RateLimitPolicy, RateLimitResult, RateLimitWindow

REGISTRATION_POLICY = RateLimitPolicy(
    "registration", settings.REGISTRATION_RATE_LIMIT, settings.REGISTRATION_RATE_WINDOW_SECONDS
)
# OTP requests and OTP resends count against the same per-email window.
OTP_REQUEST_POLICY = RateLimitPolicy(
    "otp", settings.OTP_RATE_LIMIT, settings.OTP_RATE_WINDOW_SECONDS
)
OTP_RESEND_POLICY = OTP_REQUEST_POLICY


class RateLimiter(Protocol):
    async def check(self, key: str, max_count: int, window_seconds: int) -> RateLimitResult: ...

    async def sweep_expired(self) -> int: ...


async def check_policy(
    limiter: RateLimiter, policy: RateLimitPolicy, identity: str
) -> RateLimitResult:
    return await limiter.check(policy.key_for(identity), policy.max_count, policy.window_seconds)


class FixedWindowRateLimiter:
    """Process-local windows; see InMemoryRegistrationSessionStore for the locking note."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}

    def __len__(self) -> int:
        return len(self._windows)

    async def check(self, key: str, max_count: int, window_seconds: int) -> RateLimitResult:
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now > window.expires_at:
            window = RateLimitWindow(key=key, count=0, expires_at=seconds_from(now, window_seconds))
            self._windows[key] = window

        window.count += 1
        return RateLimitResult(
            allowed=window.count <= max_count,
            remaining=max(0, max_count - window.count),
            reset_at=window.expires_at,
        )

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [k for k, w in self._windows.items() if now > w.expires_at]
        for key in expired:
            del self._windows[key]
        return len(expired)
