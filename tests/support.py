"""Shared helpers for API tests: app client, sessions and account setup."""

import uuid
from dataclasses import dataclass

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app
from app.services.mail_transport import LogMailTransport, get_mail_transport

DEFAULT_PASSWORD = "Password123!"


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Cookie": f"{self.name}={self.value}"}


def start_client() -> TestClient:
    """Enter the app lifespan (tables and default users) and return the client."""
    client = TestClient(app)
    client.__enter__()
    return client


def unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


def login(client: TestClient, username: str, password: str) -> SessionCookie:
    resp = client.post("/api/auth/login", data={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    name = get_settings().SESSION_COOKIE_NAME
    value = resp.cookies.get(name)
    assert value, "login did not set the session cookie"
    # Sessions are passed explicitly per request, never through the client jar.
    client.cookies.clear()
    return SessionCookie(name, value)


def signup(
    client: TestClient,
    username: str,
    password: str = DEFAULT_PASSWORD,
    name: str = "Test User",
    email: str | None = None,
) -> dict:
    resp = client.post(
        "/api/auth/signup",
        data={
            "username": username,
            "password": password,
            "name": name,
            "email": email or f"{username}@example.com",
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def signup_and_login(client: TestClient, prefix: str, password: str = DEFAULT_PASSWORD) -> tuple[SessionCookie, int]:
    username = unique(prefix)
    user = signup(client, username, password)
    return login(client, username, password), user["id"]


def outbox() -> LogMailTransport:
    transport = get_mail_transport()
    assert isinstance(transport, LogMailTransport)
    return transport
