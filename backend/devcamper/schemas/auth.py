"""DevCamper API: Authentication request schemas."""

from typing import Literal, Optional

from pydantic import EmailStr, Field

from devcamper.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    """Self-service registration; admins are only created by other admins."""

    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["user", "publisher"] = "user"


class LoginRequest(CamelModel):
    # Optional so a missing value yields the API's own message, not a schema error
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateDetailsRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class UpdatePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=6)
