"""Unit and integration tests for data retention: delete-only run_retention."""

import unittest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

from app.models import EmailVerification
from app.services.retention import run_retention


class TestRetentionDisabled(unittest.TestCase):
    """When RETENTION_ENABLED is False, run_retention does nothing."""

    def test_returns_zero_and_does_not_query(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = False
        settings.RETENTION_HOURS = 48
        session = MagicMock()
        self.assertEqual(run_retention(session, settings), 0)
        session.query.assert_not_called()
        session.commit.assert_not_called()


class TestRetentionNoStaleTokens(unittest.TestCase):
    def test_returns_zero(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        settings.RETENTION_HOURS = 48
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 0
        self.assertEqual(run_retention(session, settings), 0)
        session.commit.assert_called_once()


class TestRetentionDeletesStaleTokens(unittest.TestCase):
    def test_deletes_and_returns_count(self) -> None:
        settings = MagicMock()
        settings.RETENTION_ENABLED = True
        settings.RETENTION_HOURS = 48
        session = MagicMock()
        session.query.return_value.filter.return_value.delete.return_value = 3
        self.assertEqual(run_retention(session, settings), 3)
        session.query.assert_called_once_with(EmailVerification)
        session.add.assert_not_called()
        session.commit.assert_called_once()


class TestRetentionIntegration(unittest.TestCase):
    """Against the test database: stale tokens go, live ones stay."""

    def test_retention_run_against_real_db(self) -> None:
        from app.core.config import get_settings
        from app.core.database import SessionLocal, engine
        from app.models import Base, User
        from app.services.user_directory import create_user
        from tests.support import unique

        Base.metadata.create_all(bind=engine)
        settings = get_settings()
        now = datetime.now(timezone.utc)
        stale = now - timedelta(hours=settings.RETENTION_HOURS + 1)
        db = SessionLocal()
        try:
            username = unique("ret")
            user = create_user(db, username, f"{username}@example.com", "Retention", "Password123!")
            db.add_all(
                [
                    EmailVerification(
                        token=f"{username}-expired", user_id=user.id, kind="SIGNUP",
                        expires_at=stale, created_at=stale,
                    ),
                    EmailVerification(
                        token=f"{username}-used", user_id=user.id, kind="SIGNUP",
                        expires_at=now + timedelta(hours=1), used=True, created_at=stale,
                    ),
                    EmailVerification(
                        token=f"{username}-live", user_id=user.id, kind="SIGNUP",
                        expires_at=now + timedelta(hours=1), created_at=now,
                    ),
                ]
            )
            db.commit()

            deleted = run_retention(db, settings)

            self.assertGreaterEqual(deleted, 2)
            remaining = {
                t for (t,) in db.query(EmailVerification.token)
                .filter(EmailVerification.user_id == user.id)
                .all()
            }
            self.assertEqual(remaining, {f"{username}-live"})
            self.assertEqual(run_retention(db, settings), 0)
        finally:
            db.query(User).filter(User.username == username).delete()
            db.commit()
            db.close()


if __name__ == "__main__":
    unittest.main()
