"""API tests for signup, login, logout and the email verification flows."""

import re
import unittest
from unittest.mock import patch

from app.core.config import get_settings
from app.core.messages import get_message
from tests.support import (
    DEFAULT_PASSWORD,
    login,
    outbox,
    signup,
    signup_and_login,
    start_client,
    unique,
)

TOKEN_RE = re.compile(r"token=([A-Za-z0-9_\-]+)")


def _token_from(html_body: str) -> str:
    match = TOKEN_RE.search(html_body)
    assert match, "no verification token in email body"
    return match.group(1)


class AuthApiTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls.client = start_client()
        cls.admin = login(cls.client, "admin", "Admin123!")
        cls.regular = login(cls.client, "user", "User123!")

    @classmethod
    def tearDownClass(cls) -> None:
        cls.client.__exit__(None, None, None)

    def setUp(self) -> None:
        outbox().clear()

    def last_mail_to(self, address: str):
        messages = outbox().messages_to(address)
        self.assertTrue(messages, f"no email sent to {address}")
        return messages[-1]


class TestSignup(AuthApiTestCase):
    def test_signup_creates_unverified_user_and_sends_verification(self) -> None:
        username = unique("signup")
        user = signup(self.client, username)
        self.assertEqual(user["username"], username)
        self.assertEqual(user["roles"], ["USER"])
        self.assertFalse(user["emailVerified"])
        self.assertNotIn("password", user)

        sent = outbox().messages_to(f"{username}@example.com")
        self.assertEqual(len(sent), 1)
        mail = sent[0]
        self.assertEqual(mail.subject, get_message("email.subject.signup-verification"))
        self.assertIn("verify-email", mail.html_body)
        self.assertTrue(_token_from(mail.html_body))

    def test_duplicate_username_is_conflict(self) -> None:
        username = unique("dup")
        signup(self.client, username)
        resp = self.client.post(
            "/api/auth/signup",
            data={"username": username, "password": DEFAULT_PASSWORD, "name": "Dup", "email": "other@example.com"},
        )
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["type"], "urn:problem-type:conflict")

    def test_duplicate_email_is_conflict(self) -> None:
        username = unique("dupmail")
        signup(self.client, username)
        resp = self.client.post(
            "/api/auth/signup",
            data={
                "username": unique("dupmail"),
                "password": DEFAULT_PASSWORD,
                "name": "Dup",
                "email": f"{username.upper()}@EXAMPLE.COM",
            },
        )
        self.assertEqual(resp.status_code, 409)

    def test_invalid_signup_lists_fields(self) -> None:
        resp = self.client.post(
            "/api/auth/signup",
            data={"username": "x", "password": "weak", "name": "", "email": "nope"},
        )
        self.assertEqual(resp.status_code, 400)
        fields = {e["field"] for e in resp.json()["errors"]}
        self.assertEqual(fields, {"username", "password", "name", "email"})
        self.assertEqual(outbox().outbox, [])


class TestVerifyEmail(AuthApiTestCase):
    def test_verify_marks_verified_and_sends_welcome(self) -> None:
        username = unique("verify")
        signup(self.client, username)
        address = f"{username}@example.com"
        token = _token_from(self.last_mail_to(address).html_body)

        resp = self.client.get("/api/auth/verify-email", params={"token": token})
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["emailVerified"])
        self.assertEqual(self.last_mail_to(address).subject, get_message("email.subject.welcome"))

        # Tokens are single use.
        resp = self.client.get("/api/auth/verify-email", params={"token": token})
        self.assertEqual(resp.status_code, 400)

    def test_unknown_or_missing_token(self) -> None:
        self.assertEqual(self.client.get("/api/auth/verify-email", params={"token": "nope"}).status_code, 400)
        resp = self.client.get("/api/auth/verify-email")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["type"], "urn:problem-type:validation-error")


class TestLogin(AuthApiTestCase):
    def test_wrong_password(self) -> None:
        resp = self.client.post("/api/auth/login", data={"username": "admin", "password": "wrong"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["code"], "UNAUTHORIZED")
        self.assertIn("WWW-Authenticate", resp.headers)

    def test_unknown_user(self) -> None:
        resp = self.client.post("/api/auth/login", data={"username": "ghost_user", "password": DEFAULT_PASSWORD})
        self.assertEqual(resp.status_code, 401)

    def test_session_cookie_is_http_only(self) -> None:
        resp = self.client.post("/api/auth/login", data={"username": "user", "password": "User123!"})
        self.assertEqual(resp.status_code, 200)
        set_cookie = resp.headers["set-cookie"]
        self.assertIn(get_settings().SESSION_COOKIE_NAME, set_cookie)
        self.assertIn("httponly", set_cookie.lower())
        self.client.cookies.clear()

    def test_login_stamps_last_login(self) -> None:
        session, _ = signup_and_login(self.client, "stamp")
        me = self.client.get("/api/users/me", headers=session.headers).json()
        self.assertIsNotNone(me["lastLogin"])

    def test_unverified_login_refused_when_verification_required(self) -> None:
        username = unique("unver")
        signup(self.client, username)
        required = get_settings().model_copy(update={"REQUIRE_EMAIL_VERIFICATION": True})
        with patch("app.api.auth.get_settings", return_value=required):
            resp = self.client.post("/api/auth/login", data={"username": username, "password": DEFAULT_PASSWORD})
            self.assertEqual(resp.status_code, 403)
            self.assertEqual(resp.json()["detail"], get_message("error.auth.email-not-verified"))

            token = _token_from(self.last_mail_to(f"{username}@example.com").html_body)
            self.assertEqual(self.client.get("/api/auth/verify-email", params={"token": token}).status_code, 200)
            resp = self.client.post("/api/auth/login", data={"username": username, "password": DEFAULT_PASSWORD})
            self.assertEqual(resp.status_code, 200)
        self.client.cookies.clear()

    def test_logout_clears_cookie(self) -> None:
        resp = self.client.post("/api/auth/logout")
        self.assertEqual(resp.status_code, 204)
        self.assertIn(get_settings().SESSION_COOKIE_NAME, resp.headers.get("set-cookie", ""))


class TestEmailChange(AuthApiTestCase):
    def request_change(self, session, user_id, new_email):
        return self.client.post(
            f"/api/users/{user_id}/email-verification",
            data={"newEmail": new_email},
            headers=session.headers,
        )

    def test_change_flow(self) -> None:
        session, user_id = signup_and_login(self.client, "chg")
        new_email = f"{unique('new')}@example.com"

        resp = self.request_change(session, user_id, new_email)
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(len(outbox().messages_to(new_email)), 1)
        mail = self.last_mail_to(new_email)
        self.assertEqual(mail.subject, get_message("email.subject.email-change-verification"))
        self.assertIn("verify-email", mail.html_body)

        # The address only moves once the token is presented.
        me = self.client.get("/api/users/me", headers=session.headers).json()
        self.assertNotEqual(me["email"], new_email)

        resp = self.client.get("/api/auth/verify-email", params={"token": _token_from(mail.html_body)})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["email"], new_email)
        self.assertEqual(self.last_mail_to(new_email).subject, get_message("email.subject.email-changed"))

    def test_taken_email_is_conflict(self) -> None:
        session, user_id = signup_and_login(self.client, "chgtaken")
        resp = self.request_change(session, user_id, "admin@boardhole.test")
        self.assertEqual(resp.status_code, 409)

    def test_invalid_email(self) -> None:
        session, user_id = signup_and_login(self.client, "chgbad")
        resp = self.request_change(session, user_id, "not-an-email")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["errors"][0]["field"], "newEmail")

    def test_other_users_email_is_forbidden(self) -> None:
        _, other_id = signup_and_login(self.client, "chgother")
        outbox().clear()
        resp = self.request_change(self.regular, other_id, f"{unique('x')}@example.com")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(outbox().outbox, [])


class TestHealth(AuthApiTestCase):
    def test_health(self) -> None:
        resp = self.client.get("/api/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["database"], "connected")
        self.assertEqual(body["mail_transport"], "log")

    def test_unknown_route_is_problem(self) -> None:
        resp = self.client.get("/api/nowhere")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["type"], "urn:problem-type:not-found")


if __name__ == "__main__":
    unittest.main()
