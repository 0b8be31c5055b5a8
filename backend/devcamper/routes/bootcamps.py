"""
DevCamper API: Bootcamp Routes
===============================

Listing supports the advanced query grammar (see query_service), e.g.

    GET /api/v1/bootcamps?careers[in]=Business,UI/UX&averageCost[lte]=10000
    GET /api/v1/bootcamps?select=name,description&sort=-averageRating&page=2
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import require_roles, resource_query
from devcamper.models.user import Role, User
from devcamper.routes import API_PREFIX
from devcamper.schemas.bootcamp import BootcampCreate, BootcampOut, BootcampUpdate
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse
from devcamper.services.bootcamp_service import BOOTCAMP_FIELDS, bootcamp_service
from devcamper.services.query_service import ResourceQuery

router = APIRouter(prefix=f"{API_PREFIX}/bootcamps", tags=["Bootcamps"])

publisher_or_admin = require_roles(Role.PUBLISHER, Role.ADMIN)

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.get("", response_model=ListResponse, response_model_exclude_none=True)
async def list_bootcamps(
    query: ResourceQuery = Depends(resource_query(BOOTCAMP_FIELDS)),
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await bootcamp_service.list_bootcamps(db, query)


@router.get(
    "/radius/{zipcode}/{distance}",
    response_model=ListResponse,
    response_model_exclude_none=True,
    summary="Bootcamps within `distance` miles of a zipcode",
)
async def get_bootcamps_in_radius(
    zipcode: str,
    distance: float,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await bootcamp_service.get_bootcamps_in_radius(db, zipcode, distance)


@router.get(
    "/{bootcamp_id}",
    response_model=DataResponse[BootcampOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def get_bootcamp(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampOut]:
    bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
    return DataResponse(data=BootcampOut.from_model(bootcamp))


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[BootcampOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def create_bootcamp(
    payload: BootcampCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampOut]:
    bootcamp = await bootcamp_service.create_bootcamp(db, payload, user)
    return DataResponse(data=BootcampOut.from_model(bootcamp))


@router.put(
    "/{bootcamp_id}",
    response_model=DataResponse[BootcampOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def update_bootcamp(
    bootcamp_id: str,
    payload: BootcampUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[BootcampOut]:
    bootcamp = await bootcamp_service.update_bootcamp(db, bootcamp_id, payload, user)
    return DataResponse(data=BootcampOut.from_model(bootcamp))


@router.delete("/{bootcamp_id}", response_model=DataResponse[Dict[str, Any]], responses=_ERRORS)
async def delete_bootcamp(
    bootcamp_id: str,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[Dict[str, Any]]:
    await bootcamp_service.delete_bootcamp(db, bootcamp_id, user)
    return DataResponse(data={})


@router.put("/{bootcamp_id}/photo", response_model=DataResponse[str], responses=_ERRORS)
async def upload_bootcamp_photo(
    bootcamp_id: str,
    file: Optional[UploadFile] = File(default=None),
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[str]:
    filename = await bootcamp_service.upload_photo(db, bootcamp_id, file, user)
    return DataResponse(data=filename)
