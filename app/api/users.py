"""
User resource endpoints.

Checks run in a fixed order on every single-user route: session present (401),
id well formed (400), access decision (403), payload (400), then the directory
call (404, or 401 for a wrong current password).
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Query, Response, status
from sqlalchemy.orm import Session

from app.api.auth import get_current_user, get_optional_user
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.user import UserPage, UserResponse
from app.services import notifications, user_directory
from app.services.access_policy import (
    AccessDecision,
    decide_list_access,
    decide_user_access,
    enforce,
)
from app.services.validation import (
    clamp_pagination,
    normalize_search,
    parse_user_id,
    validate_email,
    validate_name,
    validate_password_change,
)

router = APIRouter()


def _authorize_target(actor: CurrentUser | None, raw_id: str) -> int:
    """Authentication, then id format, then ownership/role; returns the parsed id."""
    if actor is None:
        enforce(AccessDecision.UNAUTHENTICATED)
    target_id = parse_user_id(raw_id)
    enforce(decide_user_access(actor, target_id))
    return target_id


@router.get("", response_model=UserPage)
def list_users(
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    search: Annotated[str | None, Query()] = None,
    page: Annotated[str | None, Query()] = None,
    size: Annotated[str | None, Query()] = None,
) -> UserPage:
    """
    List users (admin only), optionally filtered by username, name or email.

    Paging parameters are clamped rather than rejected; a page past the end
    returns empty content.
    """
    enforce(decide_list_access(actor))
    page_number, page_size = clamp_pagination(page, size)
    users, total = user_directory.list_users(db, page_number, page_size, normalize_search(search))
    return UserPage.build(
        [UserResponse.from_user(u) for u in users],
        page=page_number,
        size=page_size,
        total=total,
    )


@router.get("/me", response_model=UserResponse)
def get_me(
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    return UserResponse.from_user(user_directory.get_user(db, actor.id))


@router.patch("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    user_id: str,
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    current_password: Annotated[str | None, Form(alias="currentPassword")] = None,
    new_password: Annotated[str | None, Form(alias="newPassword")] = None,
    confirm_password: Annotated[str | None, Form(alias="confirmPassword")] = None,
) -> Response:
    """Change a password; the current password must match the stored one."""
    target_id = _authorize_target(actor, user_id)
    validate_password_change(current_password, new_password, confirm_password)
    user_directory.change_password(db, target_id, current_password, new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{user_id}/email-verification", status_code=status.HTTP_204_NO_CONTENT)
def request_email_change(
    user_id: str,
    background_tasks: BackgroundTasks,
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    new_email: Annotated[str | None, Form(alias="newEmail")] = None,
) -> Response:
    """Email a verification link to the new address; the change applies once verified."""
    target_id = _authorize_target(actor, user_id)
    address = validate_email(new_email, field="newEmail")
    user, token = user_directory.request_email_change(db, target_id, address, get_settings())
    notifications.send_email_change_verification(background_tasks, user, address, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# `:path` so that traversal-looking ids ("../..") reach the id check and get a 400.
@router.get("/{user_id:path}", response_model=UserResponse)
def get_user(
    user_id: str,
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    target_id = _authorize_target(actor, user_id)
    return UserResponse.from_user(user_directory.get_user(db, target_id))


@router.put("/{user_id:path}", response_model=UserResponse)
def update_user(
    user_id: str,
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
    name: Annotated[str | None, Form()] = None,
) -> UserResponse:
    """Update the display name. Content is stored verbatim (no sanitizing)."""
    target_id = _authorize_target(actor, user_id)
    validate_name(name)
    return UserResponse.from_user(user_directory.update_user(db, target_id, name))


@router.delete("/{user_id:path}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    actor: Annotated[CurrentUser | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    target_id = _authorize_target(actor, user_id)
    user_directory.delete_user(db, target_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
