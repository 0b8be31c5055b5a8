"""
DevCamper API: Review Service
==============================

What:  Review CRUD. Every write ends with a recomputation of the parent
       bootcamp's average rating (see aggregate_service).

A second review by the same user for the same bootcamp violates
uq_reviews_bootcamp_user and is reported as a duplicate (400).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.dependencies import ensure_owner_or_admin
from devcamper.exceptions import NotFoundError
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.common import ListResponse
from devcamper.schemas.review import ReviewCreate, ReviewOut, ReviewUpdate
from devcamper.services.aggregate_service import aggregate_service
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.query_service import (
    ALL_OPERATORS,
    FieldSpec,
    ResourceFields,
    ResourceQuery,
    coerce_datetime,
    coerce_str,
    coerce_uuid,
    fetch_page,
    project,
    to_list_response,
)
from devcamper.utils import parse_id

logger = logging.getLogger(__name__)

REVIEW_FIELDS = ResourceFields(
    model=Review,
    output_schema=ReviewOut,
    fields={
        "title": FieldSpec(Review.title, coerce_str),
        "rating": FieldSpec(Review.rating, int, ALL_OPERATORS),
        "bootcamp": FieldSpec(Review.bootcamp_id, coerce_uuid),
        "user": FieldSpec(Review.user_id, coerce_uuid),
        "createdAt": FieldSpec(Review.created_at, coerce_datetime, ALL_OPERATORS),
    },
)


class ReviewService:
    async def get_review(
        self, db: AsyncSession, review_id: str, populate_bootcamp: bool = False
    ) -> Review:
        stmt = select(Review).where(Review.id == parse_id(review_id, "Review"))
        if populate_bootcamp:
            stmt = stmt.options(selectinload(Review.bootcamp))
        review = (await db.execute(stmt)).scalar_one_or_none()
        if review is None:
            raise NotFoundError(resource="Review", resource_id=str(review_id))
        return review

    async def list_reviews(self, db: AsyncSession, query: ResourceQuery) -> ListResponse:
        results = await fetch_page(
            db, REVIEW_FIELDS, query, options=[selectinload(Review.bootcamp)]
        )
        return to_list_response(
            results, query, lambda r: ReviewOut.from_model(r, populate_bootcamp=True)
        )

    async def list_bootcamp_reviews(self, db: AsyncSession, bootcamp_id: str) -> ListResponse:
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
        result = await db.execute(
            select(Review)
            .where(Review.bootcamp_id == bootcamp.id)
            .order_by(Review.created_at, Review.id)
        )
        data = [project(ReviewOut.from_model(r)) for r in result.scalars().all()]
        return ListResponse(count=len(data), data=data)

    async def add_review(
        self, db: AsyncSession, bootcamp_id: str, payload: ReviewCreate, user: User
    ) -> Review:
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)

        review = Review(**payload.model_dump(), bootcamp_id=bootcamp.id, user_id=user.id)
        db.add(review)
        await db.flush()
        await aggregate_service.update_average_rating(db, bootcamp.id)
        logger.info("Review created: id=%s bootcamp=%s", review.id, bootcamp.id)
        return review

    async def update_review(
        self, db: AsyncSession, review_id: str, payload: ReviewUpdate, user: User
    ) -> Review:
        review = await self.get_review(db, review_id)
        ensure_owner_or_admin(review.user_id, user, f"update review {review.id}")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in changes.items():
            setattr(review, key, value)
        await db.flush()

        if "rating" in changes:
            await aggregate_service.update_average_rating(db, review.bootcamp_id)
        return review

    async def delete_review(self, db: AsyncSession, review_id: str, user: User) -> None:
        review = await self.get_review(db, review_id)
        ensure_owner_or_admin(review.user_id, user, f"delete review {review.id}")

        bootcamp_id = review.bootcamp_id
        await db.delete(review)
        await db.flush()
        await aggregate_service.update_average_rating(db, bootcamp_id)
        logger.info("Review deleted: id=%s bootcamp=%s", review_id, bootcamp_id)


review_service = ReviewService()
