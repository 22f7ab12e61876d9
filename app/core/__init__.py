"""Core app configuration, database and errors."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import ProblemError

__all__ = ["get_settings", "settings", "get_db", "ProblemError"]
