"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import ROLE_ADMIN, ROLE_USER, User, UserRole
from app.models.verification import EmailVerification

__all__ = ["Base", "EmailVerification", "ROLE_ADMIN", "ROLE_USER", "User", "UserRole"]
