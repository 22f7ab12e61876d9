"""Response schemas for the user resource (camelCase on the wire)."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.user import User

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(CamelModel):
    """Public view of a user. The password hash is never included."""

    id: int
    username: str
    name: str
    email: str
    roles: list[str]
    email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            name=user.name,
            email=user.email,
            roles=sorted(user.roles),
            email_verified=bool(user.email_verified),
            created_at=user.created_at,
            updated_at=user.updated_at,
            last_login=user.last_login,
        )


class Pageable(CamelModel):
    page_number: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    offset: int = Field(..., ge=0)


class Page(CamelModel, Generic[T]):
    """One page of results with Spring-style paging metadata."""

    content: list[T]
    pageable: Pageable
    total_elements: int
    total_pages: int
    number: int
    size: int
    number_of_elements: int
    first: bool
    last: bool
    empty: bool

    @classmethod
    def build(cls, content: list[T], page: int, size: int, total: int) -> "Page[T]":
        total_pages = (total + size - 1) // size if total else 0
        return cls(
            content=content,
            pageable=Pageable(page_number=page, page_size=size, offset=page * size),
            total_elements=total,
            total_pages=total_pages,
            number=page,
            size=size,
            number_of_elements=len(content),
            first=page == 0,
            last=page >= total_pages - 1,
            empty=not content,
        )


UserPage = Page[UserResponse]
