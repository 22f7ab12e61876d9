"""Test package. Environment is fixed here, before any app module reads settings."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MAIL_TRANSPORT"] = "log"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REQUIRE_EMAIL_VERIFICATION"] = "false"
os.environ["SEED_DEFAULT_USERS"] = "true"
os.environ.setdefault("LOCALE", "ko")
