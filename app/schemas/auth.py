"""Request-scoped auth context passed to access decisions."""

from pydantic import BaseModel, Field

from app.models.user import ROLE_ADMIN


class CurrentUser(BaseModel):
    """
    Authenticated caller (id, username, roles).

    Passed explicitly to access decisions; never stored in module state.
    """

    id: int
    username: str
    roles: frozenset[str] = Field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles
