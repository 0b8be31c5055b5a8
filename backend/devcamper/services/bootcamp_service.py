"""
DevCamper API: Bootcamp Service
================================

What:  Bootcamp CRUD, radius search and photo upload.
Who:   Called by routes/bootcamps.py.

Write-time side effects (explicit here rather than model hooks):
    create        slug from name, geocode address → location columns
    update        new slug on rename, re-geocode on address change
    delete        courses and reviews of the bootcamp are deleted first

One bootcamp per publisher:
    Non-admins may own at most one bootcamp. The check locks the caller's
    user row (SELECT ... FOR UPDATE) so two concurrent creates by the same
    publisher are serialized; SQLite ignores the lock clause.

Radius search:
    radius (radians) = distance (miles) / 3963
    1. SQL bounding box on latitude/longitude (uses idx_bootcamps_location)
    2. great-circle check on the candidates in Python
"""

import logging
import math
from typing import List, Optional

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.dependencies import ensure_owner_or_admin
from devcamper.exceptions import NotFoundError, ValidationError
from devcamper.models.bootcamp import Bootcamp, Career
from devcamper.models.course import Course
from devcamper.models.review import Review
from devcamper.models.user import User
from devcamper.schemas.bootcamp import BootcampCreate, BootcampOut, BootcampUpdate
from devcamper.schemas.common import ListResponse
from devcamper.services.file_service import file_service
from devcamper.services.geocoder_service import GeoLocation, geocoder_service
from devcamper.services.query_service import (
    ALL_OPERATORS,
    EQUALITY_OPERATORS,
    FieldSpec,
    FilterOperator,
    ResourceFields,
    ResourceQuery,
    coerce_bool,
    coerce_datetime,
    coerce_enum,
    coerce_str,
    coerce_uuid,
    fetch_page,
    project,
    to_list_response,
)
from devcamper.utils import parse_id, slugify

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3963.0

_EQ_ONLY = frozenset({FilterOperator.EQ})

BOOTCAMP_FIELDS = ResourceFields(
    model=Bootcamp,
    output_schema=BootcampOut,
    fields={
        "name": FieldSpec(Bootcamp.name, coerce_str),
        "slug": FieldSpec(Bootcamp.slug, coerce_str),
        "careers": FieldSpec(
            Bootcamp.careers, coerce_enum(Career), EQUALITY_OPERATORS, is_list=True, sortable=False
        ),
        "averageCost": FieldSpec(Bootcamp.average_cost, float, ALL_OPERATORS),
        "averageRating": FieldSpec(Bootcamp.average_rating, float, ALL_OPERATORS),
        "housing": FieldSpec(Bootcamp.housing, coerce_bool, _EQ_ONLY),
        "jobAssistance": FieldSpec(Bootcamp.job_assistance, coerce_bool, _EQ_ONLY),
        "jobGuarantee": FieldSpec(Bootcamp.job_guarantee, coerce_bool, _EQ_ONLY),
        "acceptGi": FieldSpec(Bootcamp.accept_gi, coerce_bool, _EQ_ONLY),
        "location.city": FieldSpec(Bootcamp.city, coerce_str),
        "location.state": FieldSpec(Bootcamp.state, coerce_str),
        "location.zipcode": FieldSpec(Bootcamp.zipcode, coerce_str),
        "location.country": FieldSpec(Bootcamp.country, coerce_str),
        "user": FieldSpec(Bootcamp.user_id, coerce_uuid),
        "createdAt": FieldSpec(Bootcamp.created_at, coerce_datetime, ALL_OPERATORS),
    },
)


def angular_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in radians between two points given in degrees (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * math.asin(min(1.0, math.sqrt(a)))


def _apply_location(bootcamp: Bootcamp, location: GeoLocation) -> None:
    bootcamp.latitude = location.latitude
    bootcamp.longitude = location.longitude
    bootcamp.formatted_address = location.formatted_address
    bootcamp.street = location.street
    bootcamp.city = location.city
    bootcamp.state = location.state
    bootcamp.zipcode = location.zipcode
    bootcamp.country = location.country


class BootcampService:
    async def get_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> Bootcamp:
        bootcamp = await db.get(Bootcamp, parse_id(bootcamp_id, "Bootcamp"))
        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def list_bootcamps(self, db: AsyncSession, query: ResourceQuery) -> ListResponse:
        results = await fetch_page(
            db, BOOTCAMP_FIELDS, query, options=[selectinload(Bootcamp.courses)]
        )
        return to_list_response(
            results, query, lambda b: BootcampOut.from_model(b, populate_courses=True)
        )

    async def _ensure_first_bootcamp(self, db: AsyncSession, user: User) -> None:
        await db.execute(select(User.id).where(User.id == user.id).with_for_update())
        existing = await db.execute(
            select(Bootcamp.id).where(Bootcamp.user_id == user.id).limit(1)
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(
                f"The user with ID {user.id} has already published a bootcamp",
                context={"user_id": str(user.id)},
            )

    async def create_bootcamp(
        self, db: AsyncSession, payload: BootcampCreate, user: User
    ) -> Bootcamp:
        if not user.is_admin:
            await self._ensure_first_bootcamp(db, user)

        location = await geocoder_service.geocode(payload.address)
        data = payload.model_dump(mode="json")
        bootcamp = Bootcamp(**data, slug=slugify(payload.name), user_id=user.id)
        _apply_location(bootcamp, location)

        db.add(bootcamp)
        await db.flush()
        logger.info("Bootcamp created: id=%s owner=%s", bootcamp.id, user.id)
        return bootcamp

    async def update_bootcamp(
        self, db: AsyncSession, bootcamp_id: str, payload: BootcampUpdate, user: User
    ) -> Bootcamp:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "update this bootcamp")

        changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "name" in changes and changes["name"] != bootcamp.name:
            bootcamp.slug = slugify(changes["name"])
        if "address" in changes and changes["address"] != bootcamp.address:
            _apply_location(bootcamp, await geocoder_service.geocode(changes["address"]))
        for key, value in changes.items():
            setattr(bootcamp, key, value)

        await db.flush()
        logger.info("Bootcamp updated: id=%s fields=%s", bootcamp.id, sorted(changes))
        return bootcamp

    async def delete_bootcamp(self, db: AsyncSession, bootcamp_id: str, user: User) -> None:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "delete this bootcamp")

        courses = await db.execute(delete(Course).where(Course.bootcamp_id == bootcamp.id))
        reviews = await db.execute(delete(Review).where(Review.bootcamp_id == bootcamp.id))
        await db.delete(bootcamp)
        await db.flush()
        logger.info(
            "Bootcamp deleted: id=%s (courses=%d, reviews=%d)",
            bootcamp.id,
            courses.rowcount,
            reviews.rowcount,
        )

    async def get_bootcamps_in_radius(
        self, db: AsyncSession, zipcode: str, distance: float
    ) -> ListResponse:
        if distance < 0:
            raise ValidationError("Distance must not be negative", field="distance")

        center = await geocoder_service.geocode(zipcode)
        radius = distance / EARTH_RADIUS_MILES

        stmt = select(Bootcamp).where(
            Bootcamp.latitude.is_not(None), Bootcamp.longitude.is_not(None)
        )
        lat_delta = math.degrees(radius)
        stmt = stmt.where(
            Bootcamp.latitude.between(center.latitude - lat_delta, center.latitude + lat_delta)
        )
        # Longitude bounds only when the box stays clear of the poles and the antimeridian
        cos_lat = math.cos(math.radians(center.latitude))
        if cos_lat > 1e-6:
            lng_delta = lat_delta / cos_lat
            if lng_delta < 180 and abs(center.longitude) + lng_delta <= 180:
                stmt = stmt.where(
                    Bootcamp.longitude.between(
                        center.longitude - lng_delta, center.longitude + lng_delta
                    )
                )

        candidates = (await db.execute(stmt)).scalars().all()
        matches: List[Bootcamp] = [
            b
            for b in candidates
            if angular_distance(center.latitude, center.longitude, b.latitude, b.longitude)
            <= radius
        ]
        logger.debug(
            "Radius search %s/%s mi: %d candidates, %d matches",
            zipcode,
            distance,
            len(candidates),
            len(matches),
        )
        data = [project(BootcampOut.from_model(b)) for b in matches]
        return ListResponse(count=len(data), data=data)

    async def upload_photo(
        self, db: AsyncSession, bootcamp_id: str, upload: Optional[UploadFile], user: User
    ) -> str:
        bootcamp = await self.get_bootcamp(db, bootcamp_id)
        ensure_owner_or_admin(bootcamp.user_id, user, "update this bootcamp")

        if upload is None or not upload.filename:
            raise ValidationError("Please upload a file", field="file")

        content = await upload.read()
        filename = await file_service.store_photo(bootcamp.id, content, upload.content_type)
        bootcamp.photo = filename
        await db.flush()
        return filename


bootcamp_service = BootcampService()
