"""
DevCamper API: User Service
============================

What:  Account persistence shared by registration and admin user management.
Who:   auth_service (register, profile updates) and the admin /users routes.

Emails are stored lower-cased and looked up the same way, so
"John@Gmail.com" and "john@gmail.com" are one account.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import NotFoundError
from devcamper.models.user import Role, User
from devcamper.schemas.common import ListResponse
from devcamper.schemas.user import UserCreate, UserOut, UserUpdate
from devcamper.security import hash_password
from devcamper.services.query_service import (
    ALL_OPERATORS,
    FieldSpec,
    ResourceFields,
    ResourceQuery,
    coerce_datetime,
    coerce_str,
    fetch_page,
    to_list_response,
)
from devcamper.utils import parse_id

logger = logging.getLogger(__name__)

USER_FIELDS = ResourceFields(
    model=User,
    output_schema=UserOut,
    fields={
        "name": FieldSpec(User.name, coerce_str),
        "email": FieldSpec(User.email, lambda raw: raw.strip().lower()),
        "role": FieldSpec(User.role, lambda raw: Role(raw.strip())),
        "createdAt": FieldSpec(User.created_at, coerce_datetime, ALL_OPERATORS),
    },
)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    async def create_user(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """
        Insert a user with a hashed password.

        A duplicate email surfaces as IntegrityError at flush time and is
        reported by the global handler as "Duplicate field value entered".
        """
        user = User(
            name=name,
            email=normalize_email(email),
            password=hash_password(password),
            role=role,
        )
        db.add(user)
        await db.flush()
        logger.info("User created: id=%s role=%s", user.id, user.role.value)
        return user

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: str) -> User:
        user = await db.get(User, parse_id(user_id, "User"))
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user

    async def list_users(self, db: AsyncSession, query: ResourceQuery) -> ListResponse:
        results = await fetch_page(db, USER_FIELDS, query)
        return to_list_response(results, query, UserOut.from_model)

    async def admin_create_user(self, db: AsyncSession, payload: UserCreate) -> User:
        return await self.create_user(
            db,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        )

    async def update_user(self, db: AsyncSession, user_id: str, payload: UserUpdate) -> User:
        user = await self.get_user(db, user_id)
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)

        if "password" in changes:
            user.password = hash_password(changes.pop("password"))
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        for key, value in changes.items():
            setattr(user, key, value)

        await db.flush()
        logger.info("User updated: id=%s fields=%s", user.id, sorted(payload.model_fields_set))
        return user

    async def delete_user(self, db: AsyncSession, user_id: str) -> None:
        user = await self.get_user(db, user_id)
        await db.delete(user)
        await db.flush()
        logger.info("User deleted: id=%s", user.id)


user_service = UserService()
