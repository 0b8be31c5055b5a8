"""
DevCamper API: Authentication Service
======================================

What:  Registration, login, profile/password changes and the password reset
       flow.
How:   Credentials are checked with security.verify_password; every
       successful authentication returns a fresh bearer token, which the
       route hands back both in the body and as a cookie.

Password reset flow:
    POST /auth/forgotpassword {email}
        → digest + expiry stored on the user
        → email with {base_url}/api/v1/auth/resetpassword/<raw token>
    PUT  /auth/resetpassword/<raw token> {password}
        → user found by digest, expiry checked
        → password replaced, digest and expiry cleared (single use)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import (
    EmailDeliveryError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from devcamper.models.user import Role, User
from devcamper.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)
from devcamper.services.email_service import email_service
from devcamper.services.user_service import normalize_email, user_service

logger = logging.getLogger(__name__)

RESET_EMAIL_SUBJECT = "Password reset token"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; stored values are always UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuthService:
    async def register(self, db: AsyncSession, payload: RegisterRequest) -> str:
        user = await user_service.create_user(
            db,
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=Role(payload.role),
        )
        return create_access_token(str(user.id))

    async def login(self, db: AsyncSession, payload: LoginRequest) -> str:
        if not payload.email or not payload.password:
            raise ValidationError("Please provide an email and password")

        user = await user_service.get_by_email(db, payload.email)
        if user is None or not verify_password(payload.password, user.password):
            raise UnauthenticatedError("Invalid credentials", context={"email": payload.email})

        logger.info("User logged in: id=%s", user.id)
        return create_access_token(str(user.id))

    async def update_details(
        self, db: AsyncSession, user: User, payload: UpdateDetailsRequest
    ) -> User:
        if payload.name is not None:
            user.name = payload.name
        if payload.email is not None:
            user.email = normalize_email(payload.email)
        await db.flush()
        return user

    async def update_password(
        self, db: AsyncSession, user: User, payload: UpdatePasswordRequest
    ) -> str:
        if not verify_password(payload.current_password, user.password):
            raise UnauthenticatedError("Password is incorrect")

        user.password = hash_password(payload.new_password)
        await db.flush()
        logger.info("Password changed: user=%s", user.id)
        return create_access_token(str(user.id))

    async def forgot_password(self, db: AsyncSession, email: str, base_url: str) -> None:
        """
        Store a reset token for `email` and mail the reset link.

        Raises:
            NotFoundError:      no account with that email
            EmailDeliveryError: the message could not be sent; the token is
                                withdrawn before the error propagates
        """
        user = await user_service.get_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="User", message="There is no user with that email")

        raw_token, digest, expires_at = generate_reset_token()
        user.reset_password_token = digest
        user.reset_password_expire = expires_at
        await db.flush()

        reset_url = f"{base_url.rstrip('/')}/api/v1/auth/resetpassword/{raw_token}"
        text = (
            "You are receiving this email because you (or someone else) has requested "
            f"the reset of a password. Please make a PUT request to: \n\n {reset_url}"
        )
        try:
            await email_service.send(to=user.email, subject=RESET_EMAIL_SUBJECT, text=text)
        except EmailDeliveryError:
            user.reset_password_token = None
            user.reset_password_expire = None
            # The request fails, so the cleared token must be committed here
            await db.commit()
            raise

        logger.info("Password reset requested: user=%s", user.id)

    async def reset_password(
        self, db: AsyncSession, raw_token: str, payload: ResetPasswordRequest
    ) -> str:
        digest = hash_reset_token(raw_token)
        result = await db.execute(select(User).where(User.reset_password_token == digest))
        user = result.scalar_one_or_none()

        expires_at = _as_utc(user.reset_password_expire) if user else None
        if user is None or expires_at is None or expires_at <= datetime.now(timezone.utc):
            raise ValidationError("Invalid token")

        user.password = hash_password(payload.password)
        user.reset_password_token = None
        user.reset_password_expire = None
        await db.flush()
        logger.info("Password reset completed: user=%s", user.id)
        return create_access_token(str(user.id))


auth_service = AuthService()
