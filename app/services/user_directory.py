"""User aggregate: account lifecycle, credentials and email verification state."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidCredentialError, NotFoundError, ValidationError
from app.core.messages import get_message
from app.core.security import generate_verification_token, hash_password, verify_password
from app.models import ROLE_ADMIN, ROLE_USER, EmailVerification, User, UserRole
from app.models.user import ROLES
from app.models.verification import KIND_EMAIL_CHANGE, KIND_SIGNUP

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC.
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _email_in_use(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    query = db.query(User.id).filter(func.lower(User.email) == email.lower())
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def create_user(
    db: Session,
    username: str,
    email: str,
    name: str,
    password: str,
    roles: Iterable[str] = (ROLE_USER,),
    email_verified: bool = False,
) -> User:
    """Create an account; raises ConflictError for a taken username or email."""
    role_set = set(roles) or {ROLE_USER}
    unknown = role_set - set(ROLES)
    if unknown:
        raise ValueError(f"Unknown roles: {sorted(unknown)}")
    if db.query(User.id).filter(User.username == username).first() is not None:
        raise ConflictError(get_message("error.user.username-taken"))
    if _email_in_use(db, email):
        raise ConflictError(get_message("error.user.email-taken"))
    user = User(
        username=username,
        email=email,
        name=name,
        password_hash=hash_password(password),
        email_verified=email_verified,
        role_rows=[UserRole(role=r) for r in sorted(role_set)],
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Concurrent signup won the unique constraint.
        db.rollback()
        raise ConflictError(get_message("error.user.username-taken")) from e
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "roles": sorted(role_set)})
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(get_message("error.user.not-found"))
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def list_users(
    db: Session,
    page: int,
    size: int,
    search: str | None = None,
) -> tuple[list[User], int]:
    """
    One page of users ordered by id, plus the total match count.

    search matches username, name or email case-insensitively; it is bound as a
    parameter with LIKE wildcards escaped, so any text is safe to pass.
    """
    query = db.query(User)
    if search:
        needle = search.lower()
        query = query.filter(
            or_(
                func.lower(User.username).contains(needle, autoescape=True),
                func.lower(User.name).contains(needle, autoescape=True),
                func.lower(User.email).contains(needle, autoescape=True),
            )
        )
    total = query.count()
    # Pages past the end never reach OFFSET, which overflows for huge page numbers.
    if page * size >= total:
        return [], total
    items = query.order_by(User.id).offset(page * size).limit(size).all()
    return items, total


def update_user(db: Session, user_id: int, name: str) -> User:
    """Replace the display name (stored verbatim)."""
    user = get_user(db, user_id)
    user.name = name
    db.commit()
    db.refresh(user)
    return user


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    """
    Verify the current password and store the new one.

    The row is locked for the read-check-write, so two concurrent changes
    cannot both pass the check against the same stale hash.
    """
    user = db.execute(
        select(User).where(User.id == user_id).with_for_update()
    ).scalar_one_or_none()
    if user is None:
        db.rollback()
        raise NotFoundError(get_message("error.user.not-found"))
    if not verify_password(current_password, user.password_hash):
        db.rollback()
        logger.warning("Password change rejected: current password mismatch", extra={"user_id": user_id})
        raise InvalidCredentialError(get_message("error.auth.invalid-current-password"))
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info("Password changed", extra={"user_id": user_id})


def delete_user(db: Session, user_id: int) -> None:
    """Delete terminally; a repeated delete raises NotFoundError."""
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info("User deleted", extra={"user_id": user_id})


def authenticate(db: Session, username: str, password: str) -> User:
    """Check login credentials and stamp last_login."""
    user = get_user_by_username(db, username) if username else None
    if user is None or not verify_password(password or "", user.password_hash):
        raise InvalidCredentialError(get_message("error.auth.invalid-credentials"))
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    return user


def issue_verification(
    db: Session,
    user: User,
    kind: str,
    settings: Settings,
    new_email: str | None = None,
) -> str:
    """Persist a single-use token of the given kind and return it."""
    token = generate_verification_token()
    db.add(
        EmailVerification(
            token=token,
            user_id=user.id,
            kind=kind,
            new_email=new_email,
            expires_at=datetime.now(UTC) + timedelta(hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS),
        )
    )
    db.commit()
    return token


def request_email_change(db: Session, user_id: int, new_email: str, settings: Settings) -> tuple[User, str]:
    """Start an email change: the address moves only once the token is verified."""
    user = get_user(db, user_id)
    if _email_in_use(db, new_email, exclude_user_id=user.id) or user.email.lower() == new_email.lower():
        raise ConflictError(get_message("error.user.email-taken"))
    token = issue_verification(db, user, KIND_EMAIL_CHANGE, settings, new_email=new_email)
    return user, token


def verify_email(db: Session, token: str) -> tuple[User, EmailVerification]:
    """
    Consume a verification token.

    SIGNUP marks the account verified; EMAIL_CHANGE moves the account to the
    new address. Unknown, used or expired tokens raise ValidationError.
    """
    record = db.query(EmailVerification).filter(EmailVerification.token == token).first()
    if (
        record is None
        or record.used
        or _as_utc(record.expires_at) <= datetime.now(UTC)
    ):
        raise ValidationError(get_message("error.verification.invalid-token"))
    user = get_user(db, record.user_id)
    if record.kind == KIND_EMAIL_CHANGE:
        if _email_in_use(db, record.new_email, exclude_user_id=user.id):
            raise ConflictError(get_message("error.user.email-taken"))
        user.email = record.new_email
    elif record.kind != KIND_SIGNUP:
        raise ValidationError(get_message("error.verification.invalid-token"))
    user.email_verified = True
    record.used = True
    db.commit()
    db.refresh(user)
    logger.info("Email verified", extra={"user_id": user.id, "verification_kind": record.kind})
    return user, record


def ensure_default_users(db: Session, settings: Settings) -> list[User]:
    """Create the default 'admin' and 'user' accounts when missing."""
    defaults = (
        ("admin", "admin@boardhole.test", "Administrator",
         settings.DEFAULT_ADMIN_PASSWORD.get_secret_value(), (ROLE_ADMIN, ROLE_USER)),
        ("user", "user@boardhole.test", "Regular User",
         settings.DEFAULT_USER_PASSWORD.get_secret_value(), (ROLE_USER,)),
    )
    created = []
    for username, email, name, password, roles in defaults:
        if get_user_by_username(db, username) is not None:
            continue
        created.append(
            create_user(db, username, email, name, password, roles=roles, email_verified=True)
        )
    return created
