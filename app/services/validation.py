"""
Input validation for the user resource, run before any domain logic.

Each validator raises app.core.errors.ValidationError carrying one
FieldViolation per rejected field. Free text (names, search queries) is never
rejected for its content; markup and quotes are stored verbatim.
"""

import re

from app.core.config import get_settings
from app.core.errors import FieldViolation, ValidationError
from app.core.security import (
    EMAIL_MAX_LEN,
    NAME_MAX_LEN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

# Only plain decimal digits; signs, decimals and dots are malformed.
_USER_ID_RE = re.compile(r"[0-9]+")
_USERNAME_RE = re.compile(r"[A-Za-z0-9_]+")
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
# Upper bound for ids accepted in paths (PostgreSQL INTEGER).
MAX_USER_ID = 2_147_483_647


def _raise_if(violations: list[FieldViolation]) -> None:
    if violations:
        raise ValidationError(errors=violations)


def parse_user_id(raw: str) -> int:
    """Parse a path id segment into a positive integer or raise ValidationError."""
    value = raw.strip() if raw else ""
    # Length is checked before int() so huge digit strings never reach the conversion.
    if len(value) > len(str(MAX_USER_ID)) or not _USER_ID_RE.fullmatch(value):
        raise ValidationError(
            message=f"User id must be a positive integer, got {raw!r}.",
            errors=[FieldViolation("id", "must be a positive integer")],
        )
    user_id = int(value)
    if user_id < 1 or user_id > MAX_USER_ID:
        raise ValidationError(
            message=f"User id out of range: {raw!r}.",
            errors=[FieldViolation("id", "must be a positive integer")],
        )
    return user_id


def _name_violations(name: str | None) -> list[FieldViolation]:
    if name is None or not name.strip():
        return [FieldViolation("name", "must not be blank")]
    if len(name) > NAME_MAX_LEN:
        return [FieldViolation("name", f"must be at most {NAME_MAX_LEN} characters")]
    return []


def _email_violations(field: str, email: str | None) -> list[FieldViolation]:
    if email is None or not email.strip():
        return [FieldViolation(field, "must not be blank")]
    if len(email) > EMAIL_MAX_LEN:
        return [FieldViolation(field, f"must be at most {EMAIL_MAX_LEN} characters")]
    if not _EMAIL_RE.fullmatch(email.strip()):
        return [FieldViolation(field, "must be a valid email address")]
    return []


def password_complexity_violations(field: str, password: str | None) -> list[FieldViolation]:
    """
    Password rules: PASSWORD_MIN_LEN..PASSWORD_MAX_LEN characters (and no more than
    PASSWORD_MAX_BYTES UTF-8 bytes, the bcrypt input limit) with at least one
    letter, one digit and one special (non-alphanumeric, non-space) character.
    """
    if not password:
        return [FieldViolation(field, "must not be blank")]
    violations = []
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        violations.append(
            FieldViolation(
                field,
                f"must be between {PASSWORD_MIN_LEN} and {PASSWORD_MAX_LEN} characters",
            )
        )
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        violations.append(
            FieldViolation(field, f"must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
        )
    has_letter = any(c.isalpha() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(not c.isalnum() and not c.isspace() for c in password)
    if not (has_letter and has_digit and has_special):
        violations.append(
            FieldViolation(
                field,
                "must contain at least one letter, one digit and one special character",
            )
        )
    return violations


def validate_name(name: str | None) -> str:
    _raise_if(_name_violations(name))
    return name


def validate_email(email: str | None, field: str = "email") -> str:
    _raise_if(_email_violations(field, email))
    return email.strip()


def validate_password_change(
    current_password: str | None,
    new_password: str | None,
    confirm_password: str | None,
) -> None:
    """
    Shape checks for a password change. The current password is only
    compared against the stored credential after these pass.
    """
    violations: list[FieldViolation] = []
    if not current_password:
        violations.append(FieldViolation("currentPassword", "must not be blank"))
    violations.extend(password_complexity_violations("newPassword", new_password))
    if not confirm_password:
        violations.append(FieldViolation("confirmPassword", "must not be blank"))
    elif confirm_password != new_password:
        violations.append(FieldViolation("confirmPassword", "must match newPassword"))
    _raise_if(violations)


def validate_signup(
    username: str | None,
    password: str | None,
    name: str | None,
    email: str | None,
) -> None:
    violations: list[FieldViolation] = []
    if not username:
        violations.append(FieldViolation("username", "must not be blank"))
    elif not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        violations.append(
            FieldViolation(
                "username",
                f"must be between {USERNAME_MIN_LEN} and {USERNAME_MAX_LEN} characters",
            )
        )
    elif not _USERNAME_RE.fullmatch(username):
        violations.append(
            FieldViolation("username", "may only contain letters, digits and underscores")
        )
    violations.extend(password_complexity_violations("password", password))
    violations.extend(_name_violations(name))
    violations.extend(_email_violations("email", email))
    _raise_if(violations)


def normalize_search(raw: str | None) -> str | None:
    """Empty or whitespace-only search means no filter."""
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _to_int(raw: str | int | None) -> int | None:
    if raw is None or isinstance(raw, int):
        return raw
    try:
        return int(raw.strip())
    except ValueError:
        return None


def clamp_pagination(page: str | int | None, size: str | int | None) -> tuple[int, int]:
    """
    Coerce paging parameters instead of rejecting them: a bad or negative page
    becomes 0, a bad or non-positive size the default, an oversized one the max.
    """
    settings = get_settings()
    page_value = _to_int(page)
    size_value = _to_int(size)
    if page_value is None or page_value < 0:
        page_value = 0
    if size_value is None or size_value <= 0:
        size_value = settings.PAGE_DEFAULT_SIZE
    size_value = min(size_value, settings.PAGE_MAX_SIZE)
    return page_value, size_value
