"""RegistrationService — OTP-gated signup.

initiate → (email with OTP) → verify-otp   creates the durable user
                    ↘ resend-otp ↗         replaces the OTP, resets attempts/expiry

Nothing durable is written until verify succeeds. The session store,
rate limiter and email dispatcher are injected so the same workflow runs
against in-memory or Redis caches.
"""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.wb_common.database import unit_of_work
from src.wb_common.errors import (
    DuplicateEntryError,
    EmailDeliveryError,
    EmailMismatchError,
    InvalidOTPError,
    RateLimitExceededError,
    SessionExpiredError,
)
from src.wb_gateway.auth.password import hash_password
from src.wb_gateway.user.db_models import UserModel
from src.wb_gateway.user.service import NewUser, UserService, issue_token
from src.wb_notify.dispatcher import EmailDispatcher, send_quietly
from src.wb_notify.templates import otp_email, welcome_email
from src.wb_registration.application.schemas import (
    InitiateRegistrationRequest,
    InitiateRegistrationResponse,
    ResendOTPResponse,
)
from src.wb_registration.domain.models import (
    RateLimitResult,
    RegistrationData,
    RegistrationSession,
)
from src.wb_registration.domain.otp import (
    generate_otp,
    generate_registration_token,
    hash_otp,
    verify_otp,
)
from src.wb_registration.domain.rate_limiter import (
    OTP_REQUEST_POLICY,
    OTP_RESEND_POLICY,
    REGISTRATION_POLICY,
    RateLimiter,
    check_policy,
)
from src.wb_registration.domain.session_store import RegistrationSessionStore

logger = logging.getLogger("wb.registration")

Scheduler = Callable[..., Any]


class RegistrationService:
    def __init__(
        self,
        sessions: RegistrationSessionStore,
        limiter: RateLimiter,
        mailer: EmailDispatcher,
        users: UserService | None = None,
        otp_ttl_seconds: int = settings.OTP_TTL_SECONDS,
        max_verify_attempts: int = settings.OTP_MAX_VERIFY_ATTEMPTS,
    ) -> None:
        self._sessions = sessions
        self._limiter = limiter
        self._mailer = mailer
        self._users = users or UserService()
        self._ttl = otp_ttl_seconds
        self._max_attempts = max_verify_attempts

    def _enforce(self, result: RateLimitResult, message: str) -> RateLimitResult:
        if not result.allowed:
            raise RateLimitExceededError(message, result.reset_at)
        return result

    async def _session_for(self, token: str, email: str) -> RegistrationSession:
        session = await self._sessions.get(token)
        if session is None:
            raise SessionExpiredError()
        if session.email.lower() != email.lower():
            raise EmailMismatchError()
        return session

    async def _send_otp(self, email: str, otp: str, first_name: str) -> None:
        await self._mailer.send(otp_email(email, otp, first_name, self._ttl // 60))

    async def initiate(
        self,
        req: InitiateRegistrationRequest,
        client_ip: str,
        db: AsyncSession,
    ) -> tuple[InitiateRegistrationResponse, RateLimitResult]:
        """Validate uniqueness, park the signup in the session store, email the OTP.

        Returns the response plus the per-IP limiter state for response headers.
        """
        ip_limit = self._enforce(
            await check_policy(self._limiter, REGISTRATION_POLICY, client_ip),
            "Too many registration attempts. Please try again later.",
        )
        self._enforce(
            await check_policy(self._limiter, OTP_REQUEST_POLICY, req.email),
            "Too many OTP requests. Please try again later.",
        )

        conflicts = await self._users.find_conflicts(req.email, req.username, db)
        if conflicts:
            raise DuplicateEntryError(conflicts)

        otp = generate_otp()
        token = generate_registration_token()
        await self._sessions.store(
            token,
            RegistrationData(
                email=req.email,
                password_hash=hash_password(req.password),
                otp_hash=hash_otp(otp),
                username=req.username,
                first_name=req.first_name,
                last_name=req.last_name,
                phone_number=req.phone_number,
            ),
            self._ttl,
        )

        try:
            await self._send_otp(req.email, otp, req.first_name)
        except Exception as exc:
            logger.exception("Sending OTP to %s failed; discarding session", req.email)
            await self._sessions.delete(token)
            raise EmailDeliveryError() from exc

        logger.info("Registration initiated for %s", req.email)
        return InitiateRegistrationResponse(registration_token=token, expires_in=self._ttl), ip_limit

    async def resend(
        self, email: str, token: str
    ) -> tuple[ResendOTPResponse, RateLimitResult]:
        limit = self._enforce(
            await check_policy(self._limiter, OTP_RESEND_POLICY, email),
            "Too many resend attempts. Please try again later.",
        )
        session = await self._session_for(token, email)

        otp = generate_otp()
        refreshed = await self._sessions.refresh(token, hash_otp(otp), self._ttl)
        if refreshed is None:
            raise SessionExpiredError()

        try:
            await self._send_otp(session.email, otp, session.data.first_name)
        except Exception as exc:
            logger.exception("Resending OTP to %s failed", session.email)
            raise EmailDeliveryError() from exc

        return ResendOTPResponse(expires_in=self._ttl), limit

    async def verify(
        self,
        email: str,
        otp: str,
        token: str,
        db: AsyncSession,
        schedule: Scheduler | None = None,
    ) -> tuple[UserModel, str]:
        """Check the OTP and create the user.

        Each call claims an attempt before the OTP is compared; the store's
        increment is atomic, so concurrent guesses never exceed the budget.
        The user row is committed before the session is consumed, so a failed
        commit leaves the session intact.
        ``schedule`` receives the welcome-email coroutine function and its
        arguments (FastAPI's BackgroundTasks.add_task fits).
        """
        session = await self._session_for(token, email)

        attempts = await self._sessions.increment_attempts(token)
        if attempts is None:
            raise SessionExpiredError()
        if attempts > self._max_attempts:
            raise RateLimitExceededError(
                "Too many verification attempts. Please try again later.",
                session.expires_at,
            )

        if not verify_otp(otp, session.data.otp_hash):
            raise InvalidOTPError()

        data = session.data
        async with unit_of_work(db):
            user = await self._users.create_verified_user(
                NewUser(
                    email=data.email,
                    username=data.username,
                    password_hash=data.password_hash,
                    first_name=data.first_name,
                    last_name=data.last_name,
                    phone_number=data.phone_number,
                ),
                db,
            )
        auth_token = issue_token(user)
        await self._sessions.delete(token)
        logger.info("Registration completed for %s (user %s)", user.email, user.id)

        if schedule is not None:
            schedule(
                send_quietly,
                self._mailer,
                welcome_email(user.email, user.first_name, user.username),
            )
        return user, auth_token
