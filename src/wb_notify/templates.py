"""Transactional email bodies (plain text + minimal HTML).

Anything user-supplied is HTML-escaped before it reaches the HTML part.
"""

from dataclasses import dataclass
from datetime import datetime
from html import escape


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    html: str


def _footer() -> str:
    return f"© {datetime.now().year} WinBid. All rights reserved."


def otp_email(to: str, otp: str, first_name: str, ttl_minutes: int) -> EmailMessage:
    text = (
        f"Hi {first_name},\n\n"
        "Thank you for registering with WinBid. Use the following verification code "
        "to complete your registration:\n\n"
        f"Verification Code: {otp}\n\n"
        f"- This code will expire in {ttl_minutes} minutes\n"
        "- Never share this code with anyone\n\n"
        "If you didn't request this code, please ignore this email.\n\n"
        f"{_footer()}"
    )
    html = (
        f"<p>Hi {escape(first_name)},</p>"
        "<p>Use the following verification code to complete your registration:</p>"
        f"<p style=\"font-size:28px;letter-spacing:6px\"><strong>{otp}</strong></p>"
        f"<p>This code will expire in {ttl_minutes} minutes. Never share it with anyone.</p>"
        f"<p>{_footer()}</p>"
    )
    return EmailMessage(to, "Your WinBid Registration Code", text, html)


def welcome_email(to: str, first_name: str, username: str) -> EmailMessage:
    text = (
        f"Hi {first_name},\n\n"
        f"Your WinBid account '{username}' is ready. Browse products, place bids "
        "and you could be the next winner.\n\n"
        f"{_footer()}"
    )
    html = (
        f"<p>Hi {escape(first_name)},</p>"
        f"<p>Your WinBid account <strong>{escape(username)}</strong> is ready.</p>"
        f"<p>{_footer()}</p>"
    )
    return EmailMessage(to, "Welcome to WinBid!", text, html)


def contact_confirmation_email(to: str, first_name: str, subject: str) -> EmailMessage:
    text = (
        f"Hi {first_name},\n\n"
        "Thank you for contacting WinBid. We received your message and will get "
        "back to you as soon as possible.\n\n"
        f"Subject: {subject}\n\n"
        f"{_footer()}"
    )
    html = (
        f"<p>Hi {escape(first_name)},</p>"
        "<p>Thank you for contacting WinBid. We received your message.</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        f"<p>{_footer()}</p>"
    )
    return EmailMessage(to, "We received your message", text, html)


def contact_notification_email(
    to: str,
    first_name: str,
    last_name: str,
    sender_email: str,
    subject: str,
    message: str,
) -> EmailMessage:
    text = (
        "New contact form submission\n\n"
        f"Name: {first_name} {last_name}\n"
        f"Email: {sender_email}\n"
        f"Subject: {subject}\n\n"
        f"{message}\n"
    )
    html = (
        "<h3>New contact form submission</h3>"
        f"<p><strong>Name:</strong> {escape(first_name)} {escape(last_name)}</p>"
        f"<p><strong>Email:</strong> {escape(sender_email)}</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        f"<p style=\"white-space:pre-wrap\">{escape(message)}</p>"
    )
    return EmailMessage(to, f"New Contact Form Submission: {subject}", text, html)
