"""Pydantic request/response schemas."""

from app.schemas.auth import CurrentUser
from app.schemas.health import HealthResponse
from app.schemas.user import Page, Pageable, UserPage, UserResponse

__all__ = [
    "CurrentUser",
    "HealthResponse",
    "Page",
    "Pageable",
    "UserPage",
    "UserResponse",
]
