"""
DevCamper API: Authentication Routes
=====================================

Token responses (register, login, updatepassword, resetpassword) carry the
token in the body and in an HTTP-only `token` cookie.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import get_current_user
from devcamper.models.user import User
from devcamper.routes import API_PREFIX
from devcamper.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateDetailsRequest,
    UpdatePasswordRequest,
)
from devcamper.schemas.common import DataResponse, ErrorResponse, TokenResponse
from devcamper.schemas.user import UserOut
from devcamper.security import clear_token_cookie, set_token_cookie
from devcamper.services.auth_service import auth_service

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["Auth"])

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
}


def _token_response(response: Response, token: str) -> TokenResponse:
    set_token_cookie(response, token)
    return TokenResponse(token=token)


@router.post("/register", response_model=TokenResponse, responses=_ERRORS)
async def register(
    payload: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.register(db, payload)
    return _token_response(response, token)


@router.post("/login", response_model=TokenResponse, responses=_ERRORS)
async def login(
    payload: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.login(db, payload)
    return _token_response(response, token)


@router.get("/logout", response_model=DataResponse[Dict[str, Any]])
async def logout(response: Response) -> DataResponse[Dict[str, Any]]:
    clear_token_cookie(response)
    return DataResponse(data={})


@router.get("/me", response_model=DataResponse[UserOut], responses=_ERRORS)
async def get_me(user: User = Depends(get_current_user)) -> DataResponse[UserOut]:
    return DataResponse(data=UserOut.from_model(user))


@router.put("/updatedetails", response_model=DataResponse[UserOut], responses=_ERRORS)
async def update_details(
    payload: UpdateDetailsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserOut]:
    user = await auth_service.update_details(db, user, payload)
    return DataResponse(data=UserOut.from_model(user))


@router.put("/updatepassword", response_model=TokenResponse, responses=_ERRORS)
async def update_password(
    payload: UpdatePasswordRequest,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.update_password(db, user, payload)
    return _token_response(response, token)


@router.post(
    "/forgotpassword",
    response_model=DataResponse[str],
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[str]:
    base_url = str(request.base_url).rstrip("/")
    await auth_service.forgot_password(db, payload.email, base_url)
    return DataResponse(data="Email sent")


@router.put("/resetpassword/{resettoken}", response_model=TokenResponse, responses=_ERRORS)
async def reset_password(
    resettoken: str,
    payload: ResetPasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    token = await auth_service.reset_password(db, resettoken, payload)
    return _token_response(response, token)
