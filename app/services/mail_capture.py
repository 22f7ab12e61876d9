"""MailHog inspection API client: list and clear captured messages (test environments)."""

from __future__ import annotations

from dataclasses import dataclass
from email import message_from_string, policy
from email.header import decode_header, make_header
from typing import Any

import httpx

DEFAULT_TIMEOUT_SEC = 5.0


class MailCaptureError(Exception):
    """Raised when the MailHog API is unreachable or returns an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def decode_mime_header(value: str) -> str:
    """Decode RFC 2047 encoded words; undecodable input is returned unchanged."""
    try:
        return str(make_header(decode_header(value)))
    except (ValueError, LookupError, UnicodeDecodeError):
        return value


@dataclass(frozen=True)
class CapturedMessage:
    subject: str
    to: list[str]
    body: str

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> CapturedMessage:
        content = item.get("Content") or {}
        headers = content.get("Headers") or {}
        subject = (headers.get("Subject") or [""])[0]
        raw = (item.get("Raw") or {}).get("Data")
        return cls(
            subject=decode_mime_header(subject),
            to=list(headers.get("To") or []),
            body=_decoded_body(raw) if raw else content.get("Body") or "",
        )


def _decoded_body(raw: str) -> str:
    """Transfer-decoded HTML (or plain) body of a raw RFC 5322 message."""
    msg = message_from_string(raw, policy=policy.default)
    part = msg.get_body(preferencelist=("html", "plain"))
    return part.get_content() if part is not None else ""


class MailCaptureClient:
    """Synchronous client for MailHog's HTTP API (v2 list, v1 delete)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _request(self, method: str, path: str) -> httpx.Response:
        try:
            with httpx.Client(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                resp = client.request(method, path)
        except httpx.HTTPError as e:
            raise MailCaptureError(f"MailHog unreachable at {self._base_url}: {e!s}") from e
        if resp.status_code >= 400:
            raise MailCaptureError(
                f"MailHog returned {resp.status_code} for {method} {path}",
                status_code=resp.status_code,
            )
        return resp

    def is_reachable(self) -> bool:
        try:
            self._request("GET", "/api/v2/messages?limit=1")
            return True
        except MailCaptureError:
            return False

    def list_messages(self) -> list[CapturedMessage]:
        data = self._request("GET", "/api/v2/messages").json()
        return [CapturedMessage.from_api(item) for item in data.get("items") or []]

    def clear_messages(self) -> None:
        self._request("DELETE", "/api/v1/messages")
