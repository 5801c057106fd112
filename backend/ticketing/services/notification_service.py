"""
E-mail notifications for reservation and account events.

DELIVERY POLICY
===============

Notifications are best-effort and leave the process only after the
database transaction that triggered them has committed:

  - A reservation is never rolled back because the mail server is down
  - A failed send is logged (`notification_failed`) and counted, then dropped
  - There is no retry queue; the student can always see the reservation
    in the UI

Transports:
  - ResendNotifier: the Resend HTTP API. The client is synchronous, so each
    send runs in a worker thread
  - InMemoryNotifier: logs and keeps every message; used in development
    when no Resend API key is configured, and in tests
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import resend

from ticketing.core.config import Settings, get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_notification

logger = get_logger(__name__)

RESERVATION_CREATED = "Reservation created"
RESERVATION_CANCELLED = "Reservation cancelled"
PASSWORD_RESET = "Password Reset"


class Notifier(Protocol):
    async def send_mail(self, to: str, subject: str, body: str) -> None: ...


@dataclass
class SentMail:
    to: str
    subject: str
    body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class InMemoryNotifier:
    """Records messages instead of sending them."""

    def __init__(self):
        self.sent: list[SentMail] = []

    async def send_mail(self, to: str, subject: str, body: str) -> None:
        self.sent.append(SentMail(to=to, subject=subject, body=body))
        logger.info("mail_recorded", to=to, subject=subject)

    def to(self, address: str) -> list[SentMail]:
        return [mail for mail in self.sent if mail.to == address]


class ResendNotifier:
    def __init__(self, settings: Settings):
        self.settings = settings
        resend.api_key = settings.RESEND_API_KEY

    async def send_mail(self, to: str, subject: str, body: str) -> None:
        params = {
            "from": self.settings.MAIL_FROM,
            "to": [to],
            "subject": subject,
            "text": body,
        }
        response = await asyncio.to_thread(resend.Emails.send, params)
        logger.debug("mail_sent", to=to, subject=subject, message_id=response.get("id"))


_notifier: Optional[Notifier] = None


def get_notifier() -> Notifier:
    """FastAPI dependency returning the process-wide notifier."""
    global _notifier
    if _notifier is None:
        settings = get_settings()
        if settings.RESEND_API_KEY:
            _notifier = ResendNotifier(settings)
        else:
            _notifier = InMemoryNotifier()
    return _notifier


async def notify(notifier: Notifier, to: str, subject: str, body: str) -> bool:
    """Send one message under the best-effort policy. Returns delivery status."""
    if not get_settings().NOTIFICATIONS_ENABLED:
        return False
    try:
        await notifier.send_mail(to, subject, body)
    except Exception as e:
        logger.error("notification_failed", to=to, subject=subject, error=str(e))
        record_notification(subject, delivered=False)
        return False
    record_notification(subject, delivered=True)
    return True


def reservation_created_body(event_name: str, seat_number: str) -> str:
    return (
        f"You have successfully reserved a seat for event {event_name}. "
        f"Your seat is {seat_number}."
    )


def reservation_cancelled_body(event_name: str) -> str:
    return f"Your reservation for event {event_name} has been cancelled"


def password_reset_body(token: str) -> str:
    return f"Your password reset token is {token}"
