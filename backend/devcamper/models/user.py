"""
DevCamper API: User Model
==========================

What:  ORM model for the `users` table (accounts, roles, credentials).

Credential columns:
    password                 bcrypt hash, never the plaintext
    reset_password_token     SHA-256 hex digest of the emailed reset token
    reset_password_expire    when the reset token stops being accepted
    None of them are part of any response schema.
"""

import enum
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from devcamper.database import Base


class Role(str, enum.Enum):
    """Closed set of roles shared by the access gate and ownership checks."""

    USER = "user"
    PUBLISHER = "publisher"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    role: Mapped[Role] = mapped_column(
        Enum(
            Role,
            native_enum=False,
            length=20,
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=Role.USER,
    )
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    reset_password_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
