"""DevCamper API: Course routes, including the nested /bootcamps/{id}/courses."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import require_roles, resource_query
from devcamper.models.user import Role, User
from devcamper.routes import API_PREFIX
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse
from devcamper.schemas.course import CourseCreate, CourseOut, CourseUpdate
from devcamper.services.course_service import COURSE_FIELDS, course_service
from devcamper.services.query_service import ResourceQuery

router = APIRouter(prefix=API_PREFIX, tags=["Courses"])

publisher_or_admin = require_roles(Role.PUBLISHER, Role.ADMIN)

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.get("/courses", response_model=ListResponse, response_model_exclude_none=True)
async def list_courses(
    query: ResourceQuery = Depends(resource_query(COURSE_FIELDS)),
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await course_service.list_courses(db, query)


@router.get(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=ListResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def list_bootcamp_courses(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await course_service.list_bootcamp_courses(db, bootcamp_id)


@router.get(
    "/courses/{course_id}",
    response_model=DataResponse[CourseOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def get_course(
    course_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseOut]:
    course = await course_service.get_course(db, course_id, populate_bootcamp=True)
    return DataResponse(data=CourseOut.from_model(course, populate_bootcamp=True))


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[CourseOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def add_course(
    bootcamp_id: str,
    payload: CourseCreate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseOut]:
    course = await course_service.add_course(db, bootcamp_id, payload, user)
    return DataResponse(data=CourseOut.from_model(course))


@router.put(
    "/courses/{course_id}",
    response_model=DataResponse[CourseOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def update_course(
    course_id: str,
    payload: CourseUpdate,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CourseOut]:
    course = await course_service.update_course(db, course_id, payload, user)
    return DataResponse(data=CourseOut.from_model(course))


@router.delete(
    "/courses/{course_id}", response_model=DataResponse[Dict[str, Any]], responses=_ERRORS
)
async def delete_course(
    course_id: str,
    user: User = Depends(publisher_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[Dict[str, Any]]:
    await course_service.delete_course(db, course_id, user)
    return DataResponse(data={})
