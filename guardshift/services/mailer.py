from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any

from ..config import get_settings

logger = logging.getLogger(__name__)

SUBJECTS = {
    "assignment.created": "New shift assignment",
    "shift.imminent": "Shift starting soon",
    "guard.overdue": "Guard overdue for check-in",
}


def _send_email(recipient: str, subject: str, body: str) -> None:
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_from:
        logger.warning("SMTP not configured; printing email to log.")
        logger.info("Email to %s | %s\n%s", recipient, subject, body)
        return

    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = formataddr(
        (settings.smtp_from_name or settings.app_name, settings.smtp_from)
    )
    message["To"] = recipient
    message.set_content(body)

    try:
        smtp_class = smtplib.SMTP_SSL if settings.smtp_use_ssl else smtplib.SMTP
        with smtp_class(settings.smtp_host, settings.smtp_port, timeout=settings.notification_timeout_seconds) as smtp:
            if settings.smtp_use_tls and not settings.smtp_use_ssl:
                smtp.starttls()
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(message)
    except Exception as exc:  # pragma: no cover - network failures
        logger.error("Failed to send email to %s: %s", recipient, exc)
        raise


def render_event_body(event_name: str, payload: dict[str, Any]) -> str:
    lines = [f"Event: {event_name}", ""]
    for key in sorted(payload):
        lines.append(f"{key.replace('_', ' ').capitalize()}: {payload[key]}")
    return "\n".join(lines)


def send_event_email(recipient: str, event_name: str, payload: dict[str, Any]) -> None:
    settings = get_settings()
    subject = f"{settings.app_name}: {SUBJECTS.get(event_name, event_name)}"
    _send_email(recipient, subject, render_event_body(event_name, payload))
