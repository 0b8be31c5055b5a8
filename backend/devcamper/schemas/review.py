"""DevCamper API: Review schemas."""

import uuid
from datetime import datetime
from typing import Optional, Union

from pydantic import Field

from devcamper.models.review import MAX_RATING, MIN_RATING, Review
from devcamper.schemas.common import BootcampSummary, CamelModel


class ReviewOut(CamelModel):
    id: uuid.UUID
    title: str
    text: str
    rating: int
    bootcamp: Union[BootcampSummary, uuid.UUID]
    user: Optional[uuid.UUID] = None
    created_at: datetime

    @classmethod
    def from_model(cls, review: Review, populate_bootcamp: bool = False) -> "ReviewOut":
        bootcamp: Union[BootcampSummary, uuid.UUID] = review.bootcamp_id
        if populate_bootcamp:
            bootcamp = BootcampSummary.model_validate(review.bootcamp)
        return cls(
            id=review.id,
            title=review.title,
            text=review.text,
            rating=review.rating,
            bootcamp=bootcamp,
            user=review.user_id,
            created_at=review.created_at,
        )


class ReviewCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    text: str = Field(min_length=1)
    rating: int = Field(ge=MIN_RATING, le=MAX_RATING)


class ReviewUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    text: Optional[str] = Field(default=None, min_length=1)
    rating: Optional[int] = Field(default=None, ge=MIN_RATING, le=MAX_RATING)
