"""
Transactional email: templates and fire-and-forget dispatch.

Each message moves COMPOSED -> QUEUED -> SENT or FAILED. Dispatch hands
delivery to FastAPI BackgroundTasks so the HTTP response never waits on the
mail server; a failed delivery is logged and dropped, never retried.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from fastapi import BackgroundTasks

from app.core.config import get_settings
from app.core.messages import get_message
from app.services.mail_transport import MailTransport, get_mail_transport

if TYPE_CHECKING:
    from app.models.user import User

logger = logging.getLogger(__name__)

VERIFY_EMAIL_PATH = "/auth/verify-email"


class TemplateKind(str, Enum):
    SIGNUP_VERIFICATION = "SIGNUP_VERIFICATION"
    EMAIL_CHANGE_VERIFICATION = "EMAIL_CHANGE_VERIFICATION"
    WELCOME = "WELCOME"
    EMAIL_CHANGED_CONFIRMATION = "EMAIL_CHANGED_CONFIRMATION"


class MessageStatus(str, Enum):
    COMPOSED = "COMPOSED"
    QUEUED = "QUEUED"
    SENT = "SENT"
    FAILED = "FAILED"


# Allowed transitions of the per-message state machine.
_TRANSITIONS: dict[MessageStatus, frozenset[MessageStatus]] = {
    MessageStatus.COMPOSED: frozenset({MessageStatus.QUEUED}),
    MessageStatus.QUEUED: frozenset({MessageStatus.SENT, MessageStatus.FAILED}),
    MessageStatus.SENT: frozenset(),
    MessageStatus.FAILED: frozenset(),
}

# Variables each template requires (besides the recipient).
_REQUIRED_VARIABLES: dict[TemplateKind, tuple[str, ...]] = {
    TemplateKind.SIGNUP_VERIFICATION: ("token",),
    TemplateKind.EMAIL_CHANGE_VERIFICATION: ("new_email", "token"),
    TemplateKind.WELCOME: (),
    TemplateKind.EMAIL_CHANGED_CONFIRMATION: ("new_email",),
}

_SUBJECT_KEYS: dict[TemplateKind, str] = {
    TemplateKind.SIGNUP_VERIFICATION: "email.subject.signup-verification",
    TemplateKind.EMAIL_CHANGE_VERIFICATION: "email.subject.email-change-verification",
    TemplateKind.WELCOME: "email.subject.welcome",
    TemplateKind.EMAIL_CHANGED_CONFIRMATION: "email.subject.email-changed",
}

_BODY_KEYS: dict[TemplateKind, str] = {
    TemplateKind.SIGNUP_VERIFICATION: "email.body.signup-verification",
    TemplateKind.EMAIL_CHANGE_VERIFICATION: "email.body.email-change-verification",
    TemplateKind.WELCOME: "email.body.welcome",
    TemplateKind.EMAIL_CHANGED_CONFIRMATION: "email.body.email-changed",
}


class InvalidTransitionError(Exception):
    def __init__(self, current: MessageStatus, target: MessageStatus) -> None:
        self.message = f"Cannot move message from {current.value} to {target.value}"
        super().__init__(self.message)


@dataclass
class OutboundMessage:
    kind: TemplateKind | None
    recipient: str
    subject: str
    html_body: str
    status: MessageStatus = MessageStatus.COMPOSED
    error: str | None = field(default=None, repr=False)

    def transition(self, target: MessageStatus) -> None:
        if target not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status, target)
        self.status = target


def verification_link(token: str) -> str:
    settings = get_settings()
    return f"{settings.APP_BASE_URL}{settings.API_PREFIX}{VERIFY_EMAIL_PATH}?token={token}"


def _render_body(kind: TemplateKind, variables: dict[str, Any]) -> str:
    """HTML body; every interpolated value is escaped."""
    esc = {k: html.escape(str(v)) for k, v in variables.items()}
    name = esc.get("name", "")
    parts = []
    if name:
        parts.append(f"<p>{get_message('email.body.greeting', name=name)}</p>")
    parts.append(f"<p>{get_message(_BODY_KEYS[kind], new_email=esc.get('new_email', ''))}</p>")
    if "token" in variables:
        link = html.escape(verification_link(str(variables["token"])), quote=True)
        parts.append(f'<p><a href="{link}">{get_message("email.body.link-label")}</a></p>')
        parts.append(f"<p>{get_message('email.body.token', token=esc['token'])}</p>")
    return "<html><body>" + "".join(parts) + "</body></html>"


def compose(kind: TemplateKind, recipient: str, variables: dict[str, Any] | None = None) -> OutboundMessage:
    """Render subject and body for a template; raises ValueError on missing variables."""
    variables = variables or {}
    missing = [v for v in _REQUIRED_VARIABLES[kind] if not variables.get(v)]
    if missing:
        raise ValueError(f"{kind.value} requires variables: {', '.join(missing)}")
    if not recipient:
        raise ValueError("recipient must be non-empty")
    return OutboundMessage(
        kind=kind,
        recipient=recipient,
        subject=get_message(_SUBJECT_KEYS[kind]),
        html_body=_render_body(kind, variables),
    )


def deliver(message: OutboundMessage, transport: MailTransport | None = None) -> OutboundMessage:
    """
    Send a queued message once. Failures are logged and the message is marked
    FAILED; nothing is raised to the caller and nothing is retried.
    """
    transport = transport or get_mail_transport()
    try:
        transport.send(message.recipient, message.subject, message.html_body)
    except Exception as e:
        message.error = str(e)
        message.transition(MessageStatus.FAILED)
        logger.error(
            "Email dropped after delivery failure",
            extra={
                "template": message.kind.value if message.kind else None,
                "recipient": message.recipient,
                "transport": transport.name,
                "reason": str(e)[:500],
            },
        )
        return message
    message.transition(MessageStatus.SENT)
    return message


def dispatch(
    background_tasks: BackgroundTasks,
    kind: TemplateKind,
    recipient: str,
    variables: dict[str, Any] | None = None,
) -> OutboundMessage:
    """Compose now, deliver after the response has been sent."""
    message = compose(kind, recipient, variables)
    message.transition(MessageStatus.QUEUED)
    background_tasks.add_task(deliver, message)
    logger.info(
        "Email queued",
        extra={"template": kind.value, "recipient": recipient},
    )
    return message


def send_email(recipient: str, subject: str, html_body: str, transport: MailTransport | None = None) -> OutboundMessage:
    """Send an ad-hoc message synchronously (same failure semantics as deliver)."""
    message = OutboundMessage(kind=None, recipient=recipient, subject=subject, html_body=html_body)
    message.transition(MessageStatus.QUEUED)
    return deliver(message, transport)


def send_signup_verification(background_tasks: BackgroundTasks, user: User, token: str) -> OutboundMessage:
    return dispatch(
        background_tasks,
        TemplateKind.SIGNUP_VERIFICATION,
        user.email,
        {"token": token, "name": user.name},
    )


def send_email_change_verification(
    background_tasks: BackgroundTasks, user: User, new_email: str, token: str
) -> OutboundMessage:
    return dispatch(
        background_tasks,
        TemplateKind.EMAIL_CHANGE_VERIFICATION,
        new_email,
        {"new_email": new_email, "token": token, "name": user.name},
    )


def send_welcome(background_tasks: BackgroundTasks, user: User) -> OutboundMessage:
    return dispatch(background_tasks, TemplateKind.WELCOME, user.email, {"name": user.name})


def send_email_changed_confirmation(
    background_tasks: BackgroundTasks, user: User, new_email: str
) -> OutboundMessage:
    return dispatch(
        background_tasks,
        TemplateKind.EMAIL_CHANGED_CONFIRMATION,
        new_email,
        {"new_email": new_email, "name": user.name},
    )
