"""Email templates and dispatchers."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

from src.wb_notify.dispatcher import (
    ConsoleEmailDispatcher,
    SmtpEmailDispatcher,
    build_dispatcher,
    send_quietly,
)
from src.wb_notify.templates import (
    EmailMessage,
    contact_notification_email,
    otp_email,
    welcome_email,
)


class TestTemplates:
    def test_otp_email_carries_code_and_ttl(self):
        msg = otp_email("a@example.com", "123456", "Alice", 10)
        assert msg.to == "a@example.com"
        assert "123456" in msg.text
        assert "123456" in msg.html
        assert "10 minutes" in msg.text

    def test_user_input_escaped_in_html(self):
        msg = contact_notification_email(
            "admin@example.com",
            "<script>",
            "Doe",
            "x@example.com",
            "Hi & bye",
            "<b>bold</b>",
        )
        assert "<script>" not in msg.html
        assert "&lt;script&gt;" in msg.html
        assert "Hi &amp; bye" in msg.html
        assert "&lt;b&gt;bold&lt;/b&gt;" in msg.html
        assert msg.subject == "New Contact Form Submission: Hi & bye"

    def test_welcome_names_account(self):
        msg = welcome_email("a@example.com", "Alice", "alice01")
        assert "alice01" in msg.text


class TestDispatchers:
    async def test_console_logs(self, caplog):
        caplog.set_level(logging.INFO, logger="wb.notify")
        await ConsoleEmailDispatcher().send(EmailMessage("a@example.com", "Hi", "body", "<p>b</p>"))
        assert "a@example.com" in caplog.text

    async def test_send_quietly_swallows_failures(self, caplog):
        dispatcher = MagicMock()
        dispatcher.send = AsyncMock(side_effect=ConnectionError("smtp down"))

        await send_quietly(dispatcher, EmailMessage("a@example.com", "Hi", "t", "h"))

        dispatcher.send.assert_awaited_once()
        assert "a@example.com" in caplog.text

    def test_smtp_message_has_both_parts(self):
        dispatcher = SmtpEmailDispatcher("localhost", 25, "noreply@winbid.test")
        mime = dispatcher._build(EmailMessage("a@example.com", "Hi", "plain", "<p>html</p>"))
        assert mime["From"] == "noreply@winbid.test"
        assert mime["To"] == "a@example.com"
        assert mime.is_multipart()

    async def test_smtp_sends_in_thread(self):
        dispatcher = SmtpEmailDispatcher("localhost", 25, "noreply@winbid.test", use_tls=False)
        with patch("src.wb_notify.dispatcher.smtplib.SMTP") as smtp_cls:
            await dispatcher.send(EmailMessage("a@example.com", "Hi", "plain", "<p>h</p>"))
        smtp = smtp_cls.return_value.__enter__.return_value
        smtp.send_message.assert_called_once()
        smtp.starttls.assert_not_called()

    def test_build_dispatcher_defaults_to_console(self):
        with patch("src.wb_notify.dispatcher.settings") as s:
            s.EMAIL_BACKEND = "console"
            assert isinstance(build_dispatcher(), ConsoleEmailDispatcher)

    def test_build_dispatcher_smtp(self):
        with patch("src.wb_notify.dispatcher.settings") as s:
            s.EMAIL_BACKEND = "smtp"
            s.SMTP_PORT = 587
            assert isinstance(build_dispatcher(), SmtpEmailDispatcher)
