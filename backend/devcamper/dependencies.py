"""
DevCamper API: Access Control Gate
===================================

What:  FastAPI dependencies that authenticate the caller, gate routes by
       role and check record ownership.
Who:   Declared on protected routes, e.g.

           @router.post("")
           async def create_bootcamp(
               user: User = Depends(require_roles(Role.PUBLISHER, Role.ADMIN)),
           ): ...

Failure mapping:
    no/malformed/expired/forged token, unknown user → 401 UnauthenticatedError
    role not allowed, not the owner                  → 403 ForbiddenError
"""

import logging
import uuid
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.exceptions import ForbiddenError, UnauthenticatedError
from devcamper.models.user import Role, User
from devcamper.security import decode_access_token
from devcamper.services.query_service import ResourceFields, ResourceQuery, parse_query_params

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported through our own envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError(context={"reason": "missing bearer token"})

    subject = decode_access_token(credentials.credentials)
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        raise UnauthenticatedError(context={"reason": "malformed subject"})

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthenticatedError(context={"reason": "unknown user", "user_id": subject})
    return user


def require_roles(*roles: Role) -> Callable:
    """Dependency factory: the authenticated user must hold one of `roles`."""
    allowed = frozenset(roles)

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise ForbiddenError(
                f"User role {user.role.value} is not authorized to access this route",
                context={"user_id": str(user.id), "allowed": sorted(r.value for r in allowed)},
            )
        return user

    return dependency


def ensure_owner_or_admin(
    owner_id: Optional[uuid.UUID], user: User, action: str
) -> None:
    """
    Raise ForbiddenError unless `user` owns the record or is an admin.

    Records whose owner was deleted (owner_id None) are admin-only.
    """
    if user.is_admin or (owner_id is not None and owner_id == user.id):
        return
    logger.info("User %s denied: %s", user.id, action)
    raise ForbiddenError(f"User {user.id} is not authorized to {action}")


def resource_query(resource: ResourceFields) -> Callable:
    """Dependency factory translating the query string of a listing route."""

    def dependency(request: Request) -> ResourceQuery:
        return parse_query_params(request.query_params.multi_items(), resource)

    return dependency
