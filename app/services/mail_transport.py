"""Outbound mail transports: SMTP delivery or an in-memory, logged outbox."""

from __future__ import annotations

import logging
import smtplib
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.message import EmailMessage
from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

from app.core.config import get_settings

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

# Messages kept by LogMailTransport before the oldest are discarded.
OUTBOX_LIMIT = 500


class MailTransportError(Exception):
    """Raised when a transport fails to hand a message to the mail server."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MailTransport(Protocol):
    name: str

    def send(self, recipient: str, subject: str, html_body: str) -> None: ...


@dataclass
class SentMail:
    recipient: str
    subject: str
    html_body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def build_message(sender: str, recipient: str, subject: str, html_body: str) -> EmailMessage:
    """HTML message with a plain-text fallback part; non-ASCII subjects are MIME-encoded."""
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = sender
    msg["To"] = recipient
    msg.set_content("This message requires an HTML capable mail client.")
    msg.add_alternative(html_body, subtype="html")
    return msg


class SmtpMailTransport:
    """Delivers through an SMTP relay (MailHog in tests)."""

    name = "smtp"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        s = self._settings
        msg = build_message(s.MAIL_FROM, recipient, subject, html_body)
        try:
            with smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=s.SMTP_TIMEOUT_SEC) as server:
                if s.SMTP_USE_TLS:
                    server.starttls()
                if s.SMTP_USERNAME and s.SMTP_PASSWORD is not None:
                    server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD.get_secret_value())
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(
                f"SMTP delivery to {s.SMTP_HOST}:{s.SMTP_PORT} failed: {e!s}"
            ) from e
        logger.info("Email sent via SMTP", extra={"recipient": recipient, "subject": subject})


class LogMailTransport:
    """Logs messages and keeps the most recent ones in memory (dev and tests)."""

    name = "log"

    def __init__(self, limit: int = OUTBOX_LIMIT) -> None:
        self._outbox: deque[SentMail] = deque(maxlen=limit)
        self._lock = threading.Lock()

    def send(self, recipient: str, subject: str, html_body: str) -> None:
        with self._lock:
            self._outbox.append(SentMail(recipient, subject, html_body))
        logger.info("Email logged (not delivered)", extra={"recipient": recipient, "subject": subject})

    @property
    def outbox(self) -> list[SentMail]:
        with self._lock:
            return list(self._outbox)

    def messages_to(self, recipient: str) -> list[SentMail]:
        return [m for m in self.outbox if m.recipient == recipient]

    def clear(self) -> None:
        with self._lock:
            self._outbox.clear()


def create_mail_transport(settings: Settings) -> MailTransport:
    if settings.MAIL_TRANSPORT == "smtp":
        return SmtpMailTransport(settings)
    return LogMailTransport()


@lru_cache
def get_mail_transport() -> MailTransport:
    """Return the cached transport selected by MAIL_TRANSPORT."""
    return create_mail_transport(get_settings())
