"""
Role and ownership based access decisions for the user resource.

ADMIN may act on any user; everyone else only on their own account. A
non-owner non-admin is refused with FORBIDDEN whether or not the target
exists, so the error kind never reveals which ids are taken.
"""

from enum import Enum

from app.core.errors import ForbiddenError, UnauthenticatedError
from app.schemas.auth import CurrentUser


class AccessDecision(str, Enum):
    ALLOW = "allow"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"


def decide_user_access(actor: CurrentUser | None, target_id: int) -> AccessDecision:
    """Decision for read, update, delete and password change on target_id."""
    if actor is None:
        return AccessDecision.UNAUTHENTICATED
    if actor.is_admin:
        return AccessDecision.ALLOW
    if actor.id == target_id:
        return AccessDecision.ALLOW
    return AccessDecision.FORBIDDEN


def decide_list_access(actor: CurrentUser | None) -> AccessDecision:
    """Listing users is admin-only."""
    if actor is None:
        return AccessDecision.UNAUTHENTICATED
    if actor.is_admin:
        return AccessDecision.ALLOW
    return AccessDecision.FORBIDDEN


def enforce(decision: AccessDecision) -> None:
    """Raise the error matching a refusal; return silently on ALLOW."""
    if decision is AccessDecision.UNAUTHENTICATED:
        raise UnauthenticatedError()
    if decision is AccessDecision.FORBIDDEN:
        raise ForbiddenError()
