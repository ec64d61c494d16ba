"""Email dispatch collaborator.

EMAIL_BACKEND=console  log the message (local development, tests)
EMAIL_BACKEND=smtp     deliver through SMTP; smtplib is blocking, so each
                       send runs in a worker thread

Critical mail (the OTP itself) is awaited by the caller and failures
propagate. Non-critical mail goes through ``send_quietly``, scheduled as a
FastAPI background task after the response is prepared: failures are
logged and never reach the request.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage as MimeMessage
from typing import Protocol

from config.settings import settings
from src.wb_notify.templates import EmailMessage

logger = logging.getLogger("wb.notify")


class EmailDispatcher(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class ConsoleEmailDispatcher:
    async def send(self, message: EmailMessage) -> None:
        logger.info("EMAIL to=%s subject=%r\n%s", message.to, message.subject, message.text)


class SmtpEmailDispatcher:
    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls

    def _build(self, message: EmailMessage) -> MimeMessage:
        mime = MimeMessage()
        mime["From"] = self._sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    def _send_blocking(self, mime: MimeMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=15) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(mime)

    async def send(self, message: EmailMessage) -> None:
        await asyncio.to_thread(self._send_blocking, self._build(message))
        logger.info("Sent email to=%s subject=%r", message.to, message.subject)


async def send_quietly(dispatcher: EmailDispatcher, message: EmailMessage) -> None:
    """Fire-and-forget wrapper: delivery errors are logged, never raised."""
    try:
        await dispatcher.send(message)
    except Exception:
        logger.exception("Email to %s (%r) failed", message.to, message.subject)


def build_dispatcher() -> EmailDispatcher:
    if settings.EMAIL_BACKEND == "smtp":
        return SmtpEmailDispatcher(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.EMAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
        )
    return ConsoleEmailDispatcher()
