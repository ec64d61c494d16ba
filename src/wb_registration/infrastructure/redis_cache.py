"""Redis-backed session store and rate limiter (CACHE_BACKEND=redis).

Same contracts as the in-memory variants, shared by every API instance.

Key patterns:
  wb:registration:{token}   hash of the pending signup, EXPIRE = ttl
  wb:ratelimit:{key}        INCR counter, PEXPIRE set on the first hit

Redis expires keys itself, so sweep_expired is a no-op. Conditional updates
run as Lua scripts so a token that has expired between two commands is never
resurrected as a TTL-less hash.
"""

from datetime import datetime, timedelta

import redis.asyncio as aioredis

from src.wb_common.datetime_utils import Clock, seconds_from, utc_now
from src.wb_registration.domain.models import (
    RateLimitResult,
    RegistrationData,
    RegistrationSession,
)

_SESSION_PREFIX = "wb:registration:"
_RATE_PREFIX = "wb:ratelimit:"

_INCREMENT_ATTEMPTS_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then return false end
return redis.call('HINCRBY', KEYS[1], 'verification_attempts', 1)
"""

_REFRESH_LUA = """
if redis.call('EXISTS', KEYS[1]) == 0 then return 0 end
redis.call('HSET', KEYS[1], 'otp_hash', ARGV[1], 'verification_attempts', 0, 'expires_at', ARGV[2])
redis.call('EXPIRE', KEYS[1], ARGV[3])
return 1
"""

_FIXED_WINDOW_LUA = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then redis.call('PEXPIRE', KEYS[1], ARGV[1]) end
return {count, redis.call('PTTL', KEYS[1])}
"""


def _session_to_hash(session: RegistrationSession) -> dict[str, str]:
    data = session.data
    return {
        "email": data.email,
        "password_hash": data.password_hash,
        "otp_hash": data.otp_hash,
        "username": data.username,
        "first_name": data.first_name,
        "last_name": data.last_name,
        "phone_number": data.phone_number or "",
        "verification_attempts": str(session.verification_attempts),
        "created_at": session.created_at.isoformat(),
        "expires_at": session.expires_at.isoformat(),
    }


def _hash_to_session(token: str, raw: dict[str, str]) -> RegistrationSession:
    return RegistrationSession(
        token=token,
        data=RegistrationData(
            email=raw["email"],
            password_hash=raw["password_hash"],
            otp_hash=raw["otp_hash"],
            username=raw["username"],
            first_name=raw["first_name"],
            last_name=raw["last_name"],
            phone_number=raw.get("phone_number") or None,
        ),
        verification_attempts=int(raw.get("verification_attempts", "0")),
        created_at=datetime.fromisoformat(raw["created_at"]),
        expires_at=datetime.fromisoformat(raw["expires_at"]),
    )


class RedisRegistrationSessionStore:
    def __init__(self, redis: aioredis.Redis, clock: Clock = utc_now) -> None:
        self._redis = redis
        self._clock = clock

    async def store(
        self, token: str, data: RegistrationData, ttl_seconds: int
    ) -> RegistrationSession:
        now = self._clock()
        session = RegistrationSession(
            token=token,
            data=data,
            verification_attempts=0,
            created_at=now,
            expires_at=seconds_from(now, ttl_seconds),
        )
        key = _SESSION_PREFIX + token
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hset(key, mapping=_session_to_hash(session))
            pipe.expire(key, ttl_seconds)
            await pipe.execute()
        return session

    async def get(self, token: str) -> RegistrationSession | None:
        key = _SESSION_PREFIX + token
        raw = await self._redis.hgetall(key)
        if not raw:
            return None
        session = _hash_to_session(token, raw)
        if session.is_expired(self._clock()):
            await self._redis.delete(key)
            return None
        return session

    async def delete(self, token: str) -> None:
        await self._redis.delete(_SESSION_PREFIX + token)

    async def refresh(
        self, token: str, otp_hash: str, ttl_seconds: int
    ) -> RegistrationSession | None:
        expires_at = seconds_from(self._clock(), ttl_seconds)
        updated = await self._redis.eval(
            _REFRESH_LUA,
            1,
            _SESSION_PREFIX + token,
            otp_hash,
            expires_at.isoformat(),
            ttl_seconds,
        )
        if not int(updated):
            return None
        return await self.get(token)

    async def increment_attempts(self, token: str) -> int | None:
        attempts = await self._redis.eval(_INCREMENT_ATTEMPTS_LUA, 1, _SESSION_PREFIX + token)
        return int(attempts) if attempts is not None else None

    async def sweep_expired(self) -> int:
        return 0


class RedisFixedWindowRateLimiter:
    def __init__(self, redis: aioredis.Redis, clock: Clock = utc_now) -> None:
        self._redis = redis
        self._clock = clock

    async def check(self, key: str, max_count: int, window_seconds: int) -> RateLimitResult:
        count, ttl_ms = await self._redis.eval(
            _FIXED_WINDOW_LUA, 1, _RATE_PREFIX + key, window_seconds * 1000
        )
        count, ttl_ms = int(count), int(ttl_ms)
        reset_in = ttl_ms if ttl_ms > 0 else window_seconds * 1000
        return RateLimitResult(
            allowed=count <= max_count,
            remaining=max(0, max_count - count),
            reset_at=self._clock() + timedelta(milliseconds=reset_in),
        )

    async def sweep_expired(self) -> int:
        return 0
