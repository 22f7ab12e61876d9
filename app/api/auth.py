"""Session login, signup, email verification and the auth dependencies."""

import logging
from typing import Annotated

import jwt
from fastapi import APIRouter, BackgroundTasks, Depends, Form, Query, Response, status
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import ForbiddenError, UnauthenticatedError, ValidationError
from app.core.messages import get_message
from app.core.security import create_access_token, decode_access_token
from app.models.user import User
from app.models.verification import KIND_EMAIL_CHANGE, KIND_SIGNUP
from app.schemas.auth import CurrentUser
from app.schemas.user import UserResponse
from app.services import notifications, user_directory
from app.services.validation import validate_signup

logger = logging.getLogger(__name__)
router = APIRouter()
session_cookie = APIKeyCookie(name=settings.SESSION_COOKIE_NAME, auto_error=False)


def get_optional_user(
    token: Annotated[str | None, Depends(session_cookie)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser | None:
    """
    Dependency: the caller resolved from the session cookie, or None when the
    cookie is missing, invalid, expired, or names a deleted user.
    """
    if not token:
        return None
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (jwt.PyJWTError, TypeError, ValueError):
        logger.debug("Ignoring invalid session cookie")
        return None
    user = db.get(User, user_id)
    if user is None:
        return None
    return CurrentUser(id=user.id, username=user.username, roles=frozenset(user.roles))


def get_current_user(
    current_user: Annotated[CurrentUser | None, Depends(get_optional_user)],
) -> CurrentUser:
    """Dependency: require a valid session. Raises 401 if missing or invalid."""
    if current_user is None:
        raise UnauthenticatedError()
    return current_user


def _set_session_cookie(response: Response, user: User) -> None:
    cfg = get_settings()
    response.set_cookie(
        key=cfg.SESSION_COOKIE_NAME,
        value=create_access_token(sub=user.id, roles=user.roles),
        max_age=cfg.JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=cfg.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    username: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
    name: Annotated[str | None, Form()] = None,
    email: Annotated[str | None, Form()] = None,
) -> UserResponse:
    """
    Register a USER account and email a verification link.

    The verification email is sent after the response; signup never waits on
    the mail server.
    """
    validate_signup(username, password, name, email)
    user = user_directory.create_user(db, username, email.strip(), name, password)
    token = user_directory.issue_verification(db, user, KIND_SIGNUP, get_settings())
    notifications.send_signup_verification(background_tasks, user, token)
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
def login(
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    username: Annotated[str | None, Form()] = None,
    password: Annotated[str | None, Form()] = None,
) -> UserResponse:
    """
    Authenticate with username and password; sets the HttpOnly session cookie.
    Unverified accounts are refused while REQUIRE_EMAIL_VERIFICATION is on.
    """
    user = user_directory.authenticate(db, username or "", password or "")
    if get_settings().REQUIRE_EMAIL_VERIFICATION and not user.email_verified:
        raise ForbiddenError(get_message("error.auth.email-not-verified"))
    _set_session_cookie(response, user)
    logger.info("User logged in", extra={"user_id": user.id})
    return UserResponse.from_user(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout() -> Response:
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(get_settings().SESSION_COOKIE_NAME)
    return response


@router.get("/verify-email", response_model=UserResponse)
def verify_email(
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    token: Annotated[str | None, Query()] = None,
) -> UserResponse:
    """Consume a token from a verification email (signup or email change)."""
    if not token or not token.strip():
        raise ValidationError(get_message("error.verification.invalid-token"))
    user, record = user_directory.verify_email(db, token.strip())
    if record.kind == KIND_EMAIL_CHANGE:
        notifications.send_email_changed_confirmation(background_tasks, user, user.email)
    else:
        notifications.send_welcome(background_tasks, user)
    return UserResponse.from_user(user)
