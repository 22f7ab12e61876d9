"""
Create a user (e.g. an extra admin). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD EMAIL [NAME] [--admin]
Example:
  python -m app.scripts.create_user ops 'S3cure-pass!' ops@example.com "Ops Team" --admin
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.errors import ConflictError, ValidationError
from app.models import ROLE_ADMIN, ROLE_USER
from app.services.user_directory import create_user
from app.services.validation import validate_signup


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Board-Hole user (email pre-verified).")
    parser.add_argument("username", help="Username (3-20 letters, digits or underscores)")
    parser.add_argument("password", help="Password (8-72 chars with a letter, digit and symbol)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("name", nargs="?", default=None, help="Display name (defaults to username)")
    parser.add_argument("--admin", action="store_true", help="Grant the ADMIN role")
    args = parser.parse_args(argv)

    username = args.username.strip()
    name = args.name or username
    try:
        validate_signup(username, args.password, name, args.email)
    except ValidationError as e:
        for violation in e.errors:
            print(f"{violation.field}: {violation.message}", file=sys.stderr)
        return 1

    roles = (ROLE_ADMIN, ROLE_USER) if args.admin else (ROLE_USER,)
    db = SessionLocal()
    try:
        user = create_user(
            db,
            username,
            args.email.strip(),
            name,
            args.password,
            roles=roles,
            email_verified=True,
        )
    except ConflictError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' (id={user.id}) with roles {', '.join(sorted(roles))}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
