"""
DevCamper API: Bootcamp Schemas
================================

What:  Input validation for bootcamp writes and the public bootcamp shape.

Read-only fields:
    averageRating, averageCost, slug, location and photo are absent from
    BootcampCreate/BootcampUpdate, so values sent for them are ignored.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field

from devcamper.models.bootcamp import Bootcamp, Career
from devcamper.schemas.common import CamelModel
from devcamper.schemas.course import CourseOut

URL_PATTERN = (
    r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)


class LocationOut(CamelModel):
    """GeoJSON point plus the structured address returned by the geocoder."""

    type: Literal["Point"] = "Point"
    # [longitude, latitude]
    coordinates: List[float]
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class BootcampOut(CamelModel):
    id: uuid.UUID
    name: str
    slug: Optional[str] = None
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: str
    location: Optional[LocationOut] = None
    careers: List[Career]
    average_rating: Optional[float] = None
    average_cost: Optional[float] = None
    photo: str
    housing: bool
    job_assistance: bool
    job_guarantee: bool
    accept_gi: bool
    user: Optional[uuid.UUID] = None
    created_at: datetime
    courses: Optional[List[CourseOut]] = None

    @classmethod
    def from_model(cls, bootcamp: Bootcamp, populate_courses: bool = False) -> "BootcampOut":
        location = None
        if bootcamp.longitude is not None and bootcamp.latitude is not None:
            location = LocationOut(
                coordinates=[bootcamp.longitude, bootcamp.latitude],
                formatted_address=bootcamp.formatted_address,
                street=bootcamp.street,
                city=bootcamp.city,
                state=bootcamp.state,
                zipcode=bootcamp.zipcode,
                country=bootcamp.country,
            )
        courses = None
        if populate_courses:
            courses = [CourseOut.from_model(course) for course in bootcamp.courses]
        return cls(
            id=bootcamp.id,
            name=bootcamp.name,
            slug=bootcamp.slug,
            description=bootcamp.description,
            website=bootcamp.website,
            phone=bootcamp.phone,
            email=bootcamp.email,
            address=bootcamp.address,
            location=location,
            careers=bootcamp.careers or [],
            average_rating=bootcamp.average_rating,
            average_cost=bootcamp.average_cost,
            photo=bootcamp.photo,
            housing=bootcamp.housing,
            job_assistance=bootcamp.job_assistance,
            job_guarantee=bootcamp.job_guarantee,
            accept_gi=bootcamp.accept_gi,
            user=bootcamp.user_id,
            created_at=bootcamp.created_at,
            courses=courses,
        )


class BootcampCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(min_length=1, max_length=255)
    careers: List[Career] = Field(min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False


class BootcampUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, min_length=1, max_length=500)
    website: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(default=None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(default=None, min_length=1, max_length=255)
    careers: Optional[List[Career]] = Field(default=None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None
