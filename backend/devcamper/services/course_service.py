"""
DevCamper API: Course Service
==============================

What:  Course CRUD. Every write ends with a recomputation of the parent
       bootcamp's average cost (see aggregate_service).
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.dependencies import ensure_owner_or_admin
from devcamper.exceptions import NotFoundError
from devcamper.models.course import Course, MinimumSkill
from devcamper.models.user import User
from devcamper.schemas.common import ListResponse
from devcamper.schemas.course import CourseCreate, CourseOut, CourseUpdate
from devcamper.services.aggregate_service import aggregate_service
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.query_service import (
    ALL_OPERATORS,
    FieldSpec,
    FilterOperator,
    ResourceFields,
    ResourceQuery,
    coerce_bool,
    coerce_datetime,
    coerce_str,
    coerce_uuid,
    fetch_page,
    project,
    to_list_response,
)
from devcamper.utils import parse_id

logger = logging.getLogger(__name__)

COURSE_FIELDS = ResourceFields(
    model=Course,
    output_schema=CourseOut,
    fields={
        "title": FieldSpec(Course.title, coerce_str),
        "weeks": FieldSpec(Course.weeks, coerce_str),
        "tuition": FieldSpec(Course.tuition, float, ALL_OPERATORS),
        "minimumSkill": FieldSpec(Course.minimum_skill, lambda raw: MinimumSkill(raw.strip())),
        "scholarshipAvailable": FieldSpec(
            Course.scholarship_available, coerce_bool, frozenset({FilterOperator.EQ})
        ),
        "bootcamp": FieldSpec(Course.bootcamp_id, coerce_uuid),
        "user": FieldSpec(Course.user_id, coerce_uuid),
        "createdAt": FieldSpec(Course.created_at, coerce_datetime, ALL_OPERATORS),
    },
)


class CourseService:
    async def get_course(
        self, db: AsyncSession, course_id: str, populate_bootcamp: bool = False
    ) -> Course:
        stmt = select(Course).where(Course.id == parse_id(course_id, "Course"))
        if populate_bootcamp:
            stmt = stmt.options(selectinload(Course.bootcamp))
        course = (await db.execute(stmt)).scalar_one_or_none()
        if course is None:
            raise NotFoundError(resource="Course", resource_id=str(course_id))
        return course

    async def list_courses(self, db: AsyncSession, query: ResourceQuery) -> ListResponse:
        results = await fetch_page(
            db, COURSE_FIELDS, query, options=[selectinload(Course.bootcamp)]
        )
        return to_list_response(
            results, query, lambda c: CourseOut.from_model(c, populate_bootcamp=True)
        )

    async def list_bootcamp_courses(self, db: AsyncSession, bootcamp_id: str) -> ListResponse:
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
        result = await db.execute(
            select(Course)
            .where(Course.bootcamp_id == bootcamp.id)
            .order_by(Course.created_at, Course.id)
        )
        data = [project(CourseOut.from_model(c)) for c in result.scalars().all()]
        return ListResponse(count=len(data), data=data)

    async def add_course(
        self, db: AsyncSession, bootcamp_id: str, payload: CourseCreate, user: User
    ) -> Course:
        bootcamp = await bootcamp_service.get_bootcamp(db, bootcamp_id)
        ensure_owner_or_admin(
            bootcamp.user_id, user, f"add a course to bootcamp {bootcamp.id}"
        )

        course = Course(**payload.model_dump(), bootcamp_id=bootcamp.id, user_id=user.id)
        db.add(course)
        await db.flush()
        await aggregate_service.update_average_cost(db, bootcamp.id)
        logger.info("Course created: id=%s bootcamp=%s", course.id, bootcamp.id)
        return course

    async def update_course(
        self, db: AsyncSession, course_id: str, payload: CourseUpdate, user: User
    ) -> Course:
        course = await self.get_course(db, course_id)
        ensure_owner_or_admin(course.user_id, user, f"update course {course.id}")

        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        for key, value in changes.items():
            setattr(course, key, value)
        await db.flush()

        if "tuition" in changes:
            await aggregate_service.update_average_cost(db, course.bootcamp_id)
        return course

    async def delete_course(self, db: AsyncSession, course_id: str, user: User) -> None:
        course = await self.get_course(db, course_id)
        ensure_owner_or_admin(course.user_id, user, f"delete course {course.id}")

        bootcamp_id = course.bootcamp_id
        await db.delete(course)
        await db.flush()
        await aggregate_service.update_average_cost(db, bootcamp_id)
        logger.info("Course deleted: id=%s bootcamp=%s", course_id, bootcamp_id)


course_service = CourseService()
