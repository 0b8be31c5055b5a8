"""
DevCamper API: Bootcamp Aggregates
===================================

What:  Keeps Bootcamp.average_cost and Bootcamp.average_rating in step with
       the bootcamp's courses and reviews.
When:  Called by course_service/review_service after every create, update
       and delete, once the change has been flushed.

Rules:
    average_cost    mean tuition of the surviving courses, rounded UP to the
                    next multiple of 10 (mean 8750 → 8750, mean 8751 → 8760)
    average_rating  plain mean of the surviving review ratings
    Both become NULL when the bootcamp has no children left.

Failure handling:
    Each recomputation runs in a SAVEPOINT. A failure rolls back only the
    savepoint, is logged, and does not fail the request that triggered it;
    the next write to the same bootcamp recomputes again.
"""

import logging
import math
import uuid
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course
from devcamper.models.review import Review

logger = logging.getLogger(__name__)


def round_up_to_ten(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return float(math.ceil(value / 10) * 10)


class AggregateService:
    async def update_average_cost(self, db: AsyncSession, bootcamp_id: uuid.UUID) -> Optional[float]:
        try:
            async with db.begin_nested():
                mean = (
                    await db.execute(
                        select(func.avg(Course.tuition)).where(Course.bootcamp_id == bootcamp_id)
                    )
                ).scalar_one()
                average_cost = round_up_to_ten(float(mean) if mean is not None else None)
                await db.execute(
                    update(Bootcamp)
                    .where(Bootcamp.id == bootcamp_id)
                    .values(average_cost=average_cost)
                )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to recompute average cost for bootcamp %s: %s", bootcamp_id, str(e)
            )
            return None

        logger.debug("Bootcamp %s average cost → %s", bootcamp_id, average_cost)
        return average_cost

    async def update_average_rating(
        self, db: AsyncSession, bootcamp_id: uuid.UUID
    ) -> Optional[float]:
        try:
            async with db.begin_nested():
                mean = (
                    await db.execute(
                        select(func.avg(Review.rating)).where(Review.bootcamp_id == bootcamp_id)
                    )
                ).scalar_one()
                average_rating = float(mean) if mean is not None else None
                await db.execute(
                    update(Bootcamp)
                    .where(Bootcamp.id == bootcamp_id)
                    .values(average_rating=average_rating)
                )
        except SQLAlchemyError as e:
            logger.error(
                "Failed to recompute average rating for bootcamp %s: %s", bootcamp_id, str(e)
            )
            return None

        logger.debug("Bootcamp %s average rating → %s", bootcamp_id, average_rating)
        return average_rating


aggregate_service = AggregateService()
