"""DevCamper API: Course schemas."""

import uuid
from datetime import datetime
from typing import Optional, Union

from pydantic import Field

from devcamper.models.course import Course, MinimumSkill
from devcamper.schemas.common import BootcampSummary, CamelModel


class CourseOut(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    weeks: str
    tuition: float
    minimum_skill: MinimumSkill
    scholarship_available: bool
    # Bootcamp id, or {id, name, description} when populated
    bootcamp: Union[BootcampSummary, uuid.UUID]
    user: Optional[uuid.UUID] = None
    created_at: datetime

    @classmethod
    def from_model(cls, course: Course, populate_bootcamp: bool = False) -> "CourseOut":
        bootcamp: Union[BootcampSummary, uuid.UUID] = course.bootcamp_id
        if populate_bootcamp:
            bootcamp = BootcampSummary.model_validate(course.bootcamp)
        return cls(
            id=course.id,
            title=course.title,
            description=course.description,
            weeks=course.weeks,
            tuition=course.tuition,
            minimum_skill=course.minimum_skill,
            scholarship_available=course.scholarship_available,
            bootcamp=bootcamp,
            user=course.user_id,
            created_at=course.created_at,
        )


class CourseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    weeks: str = Field(min_length=1, max_length=20)
    tuition: float = Field(ge=0)
    minimum_skill: MinimumSkill
    scholarship_available: bool = False


class CourseUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    weeks: Optional[str] = Field(default=None, min_length=1, max_length=20)
    tuition: Optional[float] = Field(default=None, ge=0)
    minimum_skill: Optional[MinimumSkill] = None
    scholarship_available: Optional[bool] = None
