"""DevCamper API: User schemas (admin management and `/auth/me`)."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from devcamper.models.user import Role, User
from devcamper.schemas.common import CamelModel


class UserOut(CamelModel):
    """Public view of a user. Credential columns are never part of it."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    created_at: datetime

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.USER


class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    role: Optional[Role] = None
