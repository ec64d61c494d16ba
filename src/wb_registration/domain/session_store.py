"""Registration Session Store — pending signups between OTP dispatch and verify.

Expiry is lazy: ``get`` treats a session past ``expires_at`` as absent and
evicts it, so correctness never depends on the background sweep. The sweep
(see sweeper.py) only bounds memory.

A token that has been deleted or has expired never resolves again; ``refresh``
and ``increment_attempts`` on such a token return None rather than
recreating state.
"""

from dataclasses import replace
from typing import Protocol

from src.wb_common.datetime_utils import Clock, seconds_from, utc_now
from src.wb_registration.domain.models import RegistrationData, RegistrationSession


class RegistrationSessionStore(Protocol):
    async def store(
        self, token: str, data: RegistrationData, ttl_seconds: int
    ) -> RegistrationSession: ...

    async def get(self, token: str) -> RegistrationSession | None: ...

    async def delete(self, token: str) -> None: ...

    async def refresh(
        self, token: str, otp_hash: str, ttl_seconds: int
    ) -> RegistrationSession | None: ...

    async def increment_attempts(self, token: str) -> int | None: ...

    async def sweep_expired(self) -> int: ...


class InMemoryRegistrationSessionStore:
    """Process-local store.

    Methods never await, so under the single-threaded event loop each call
    runs to completion without interleaving; no lock is needed. Sessions are
    not shared between processes (use the Redis store for that).
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._sessions: dict[str, RegistrationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _live(self, token: str) -> RegistrationSession | None:
        session = self._sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self._clock()):
            del self._sessions[token]
            return None
        return session

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
        self._sessions[token] = session
        return replace(session)

    async def get(self, token: str) -> RegistrationSession | None:
        session = self._live(token)
        return replace(session) if session else None

    async def delete(self, token: str) -> None:
        self._sessions.pop(token, None)

    async def refresh(
        self, token: str, otp_hash: str, ttl_seconds: int
    ) -> RegistrationSession | None:
        session = self._live(token)
        if session is None:
            return None
        session.data = replace(session.data, otp_hash=otp_hash)
        session.verification_attempts = 0
        session.expires_at = seconds_from(self._clock(), ttl_seconds)
        return replace(session)

    async def increment_attempts(self, token: str) -> int | None:
        session = self._live(token)
        if session is None:
            return None
        session.verification_attempts += 1
        return session.verification_attempts

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [t for t, s in self._sessions.items() if s.is_expired(now)]
        for token in expired:
            del self._sessions[token]
        return len(expired)
