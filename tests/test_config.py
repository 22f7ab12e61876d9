"""Settings validation: bad values fail fast at startup."""

import unittest

from pydantic import ValidationError

from app.core.config import Settings


class TestSettings(unittest.TestCase):
    def test_test_environment_values(self) -> None:
        settings = Settings()
        self.assertEqual(settings.DATABASE_URL, "sqlite://")
        self.assertEqual(settings.MAIL_TRANSPORT, "log")
        self.assertEqual(settings.PAGE_DEFAULT_SIZE, 20)
        self.assertEqual(settings.PAGE_MAX_SIZE, 2000)
        self.assertEqual(settings.SMTP_PORT, 1025)

    def test_rejects_invalid_values(self) -> None:
        cases = {
            "DATABASE_URL": "mysql://localhost/db",
            "SMTP_PORT": 70000,
            "BCRYPT_ROUNDS": 2,
            "APP_BASE_URL": "ftp://example.com",
            "MAIL_FROM": "not-an-address",
        }
        for field, value in cases.items():
            with self.subTest(field=field), self.assertRaises(ValidationError):
                Settings(**{field: value})


if __name__ == "__main__":
    unittest.main()
