"""DevCamper API: Review routes, including the nested /bootcamps/{id}/reviews."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.dependencies import require_roles, resource_query
from devcamper.models.user import Role, User
from devcamper.routes import API_PREFIX
from devcamper.schemas.common import DataResponse, ErrorResponse, ListResponse
from devcamper.schemas.review import ReviewCreate, ReviewOut, ReviewUpdate
from devcamper.services.review_service import REVIEW_FIELDS, review_service
from devcamper.services.query_service import ResourceQuery

router = APIRouter(prefix=API_PREFIX, tags=["Reviews"])

user_or_admin = require_roles(Role.USER, Role.ADMIN)

_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.get("/reviews", response_model=ListResponse, response_model_exclude_none=True)
async def list_reviews(
    query: ResourceQuery = Depends(resource_query(REVIEW_FIELDS)),
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await review_service.list_reviews(db, query)


@router.get(
    "/bootcamps/{bootcamp_id}/reviews",
    response_model=ListResponse,
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def list_bootcamp_reviews(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ListResponse:
    return await review_service.list_bootcamp_reviews(db, bootcamp_id)


@router.get(
    "/reviews/{review_id}",
    response_model=DataResponse[ReviewOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def get_review(
    review_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ReviewOut]:
    review = await review_service.get_review(db, review_id, populate_bootcamp=True)
    return DataResponse(data=ReviewOut.from_model(review, populate_bootcamp=True))


@router.post(
    "/bootcamps/{bootcamp_id}/reviews",
    status_code=status.HTTP_201_CREATED,
    response_model=DataResponse[ReviewOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def add_review(
    bootcamp_id: str,
    payload: ReviewCreate,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ReviewOut]:
    review = await review_service.add_review(db, bootcamp_id, payload, user)
    return DataResponse(data=ReviewOut.from_model(review))


@router.put(
    "/reviews/{review_id}",
    response_model=DataResponse[ReviewOut],
    response_model_exclude_none=True,
    responses=_ERRORS,
)
async def update_review(
    review_id: str,
    payload: ReviewUpdate,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[ReviewOut]:
    review = await review_service.update_review(db, review_id, payload, user)
    return DataResponse(data=ReviewOut.from_model(review))


@router.delete(
    "/reviews/{review_id}", response_model=DataResponse[Dict[str, Any]], responses=_ERRORS
)
async def delete_review(
    review_id: str,
    user: User = Depends(user_or_admin),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[Dict[str, Any]]:
    await review_service.delete_review(db, review_id, user)
    return DataResponse(data={})
