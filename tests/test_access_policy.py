"""Unit tests for ownership and role access decisions."""

import unittest

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.models import ROLE_ADMIN, ROLE_USER
from app.schemas.auth import CurrentUser
from app.services.access_policy import (
    AccessDecision,
    decide_list_access,
    decide_user_access,
    enforce,
)

ADMIN = CurrentUser(id=1, username="admin", roles=frozenset({ROLE_ADMIN, ROLE_USER}))
REGULAR = CurrentUser(id=2, username="user", roles=frozenset({ROLE_USER}))


class TestDecideUserAccess(unittest.TestCase):
    def test_anonymous_is_unauthenticated(self) -> None:
        self.assertEqual(decide_user_access(None, 2), AccessDecision.UNAUTHENTICATED)

    def test_owner_is_allowed(self) -> None:
        self.assertEqual(decide_user_access(REGULAR, 2), AccessDecision.ALLOW)

    def test_admin_is_allowed_on_any_id(self) -> None:
        for target in (1, 2, 999999):
            self.assertEqual(decide_user_access(ADMIN, target), AccessDecision.ALLOW)

    def test_non_owner_is_forbidden_whether_or_not_target_exists(self) -> None:
        self.assertEqual(decide_user_access(REGULAR, 1), AccessDecision.FORBIDDEN)
        self.assertEqual(decide_user_access(REGULAR, 999999), AccessDecision.FORBIDDEN)

    def test_admin_role_alone_grants_access(self) -> None:
        admin_only = CurrentUser(id=5, username="ops", roles=frozenset({ROLE_ADMIN}))
        self.assertEqual(decide_user_access(admin_only, 2), AccessDecision.ALLOW)


class TestDecideListAccess(unittest.TestCase):
    def test_decisions(self) -> None:
        self.assertEqual(decide_list_access(None), AccessDecision.UNAUTHENTICATED)
        self.assertEqual(decide_list_access(REGULAR), AccessDecision.FORBIDDEN)
        self.assertEqual(decide_list_access(ADMIN), AccessDecision.ALLOW)


class TestEnforce(unittest.TestCase):
    def test_allow_returns_none(self) -> None:
        self.assertIsNone(enforce(AccessDecision.ALLOW))

    def test_forbidden_raises_403(self) -> None:
        with self.assertRaises(ForbiddenError) as ctx:
            enforce(AccessDecision.FORBIDDEN)
        self.assertEqual(ctx.exception.status_code, 403)

    def test_unauthenticated_raises_401(self) -> None:
        with self.assertRaises(UnauthenticatedError) as ctx:
            enforce(AccessDecision.UNAUTHENTICATED)
        self.assertEqual(ctx.exception.status_code, 401)


if __name__ == "__main__":
    unittest.main()
