"""DevCamper API: Admin user management. Every route requires the admin role."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import require_roles, resource_query
from devcamper.models.user import Role
from devcamper.routes import API_PREFIX
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse
from devcamper.schemas.user import UserCreate, UserOut, UserUpdate
from devcamper.services.query_service import ResourceQuery
from devcamper.services.user_service import USER_FIELDS, user_service

router = APIRouter(
    prefix=f"{API_PREFIX}/users",
    tags=["Users"],
    dependencies=[Depends(require_roles(Role.ADMIN))],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
    },
)


@router.get("", response_model=ListResponse, response_model_exclude_none=True)
async def list_users(
    query: ResourceQuery = Depends(resource_query(USER_FIELDS)),
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await user_service.list_users(db, query)


@router.get("/{user_id}", response_model=DataResponse[UserOut])
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserOut]:
    user = await user_service.get_user(db, user_id)
    return DataResponse(data=UserOut.from_model(user))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=DataResponse[UserOut])
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserOut]:
    user = await user_service.admin_create_user(db, payload)
    return DataResponse(data=UserOut.from_model(user))


@router.put("/{user_id}", response_model=DataResponse[UserOut])
async def update_user(
    user_id: str,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserOut]:
    user = await user_service.update_user(db, user_id, payload)
    return DataResponse(data=UserOut.from_model(user))


@router.delete("/{user_id}", response_model=DataResponse[Dict[str, Any]])
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[Dict[str, Any]]:
    await user_service.delete_user(db, user_id)
    return DataResponse(data={})
