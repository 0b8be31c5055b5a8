"""
DevCamper API: Credentials & Tokens
====================================

What:  Password hashing, bearer token issuance/verification, and password
       reset tokens.
How:   passlib's CryptContext (bcrypt) for passwords, python-jose for HS256
       JWTs, hashlib/secrets for reset tokens.
Who:   Used by auth_service, user_service and the access gate in
       dependencies.py.

Reset token lifecycle:
    generate_reset_token() → (raw, digest, expires_at)
        raw       emailed to the user, never stored
        digest    SHA-256 hex of raw, stored on the user row
    On reset the incoming token is hashed with hash_reset_token() and matched
    against the stored digest; the digest is cleared once it is consumed.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from fastapi import Response
from jose import JWTError, jwt
from passlib.context import CryptContext

from devcamper.config import settings
from devcamper.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

TOKEN_COOKIE_NAME = "token"


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    """Constant-time comparison of a candidate against a stored bcrypt hash."""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        # Stored value is not a recognizable hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ── Bearer tokens ─────────────────────────────────────────────────────────

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed JWT whose `sub` claim is the user id."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(days=settings.jwt_expire_days)
    )
    payload = {"sub": str(subject), "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str:
    """
    Verify signature and expiry and return the subject.

    Raises:
        UnauthenticatedError for any failure (bad signature, expired,
        malformed, missing subject). Causes are only logged.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info("Rejected bearer token: %s", str(e))
        raise UnauthenticatedError(context={"reason": type(e).__name__})

    subject = payload.get("sub")
    if not subject:
        raise UnauthenticatedError(context={"reason": "missing subject"})
    return subject


def set_token_cookie(response: Response, token: str) -> None:
    """
    Attach the bearer token as an HTTP-only cookie.

    Expiry matches jwt_cookie_expire_days; `secure` only in production.
    """
    max_age = settings.jwt_cookie_expire_days * 24 * 60 * 60
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=max_age,
        expires=max_age,
        httponly=True,
        secure=settings.is_production,
    )


def clear_token_cookie(response: Response) -> None:
    # Overwrites the cookie with a short-lived placeholder
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value="none",
        max_age=10,
        expires=10,
        httponly=True,
        secure=settings.is_production,
    )


# ── Password reset tokens ─────────────────────────────────────────────────

def hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_reset_token() -> Tuple[str, str, datetime]:
    raw_token = secrets.token_hex(20)
    expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=settings.reset_token_expire_minutes
    )
    return raw_token, hash_reset_token(raw_token), expires_at
