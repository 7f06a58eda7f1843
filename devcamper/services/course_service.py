"""
DevCamper API — Course Service
================================

What:  Business logic for courses plus the bootcamp average-cost aggregation.
Who:   Called by the course route handlers and the nested
       /bootcamps/{id}/courses routes.

Average Cost:
    After every course insert, update or delete the service recomputes the
    mean tuition of the affected bootcamp(s) and writes it to
    bootcamp.average_cost:

        SELECT bootcamp_id, AVG(tuition) AS average_cost
        FROM courses
        WHERE bootcamp_id = :id
        GROUP BY bootcamp_id

    No rows (last course removed) stores NULL. The recompute runs after the
    triggering write is flushed, inside the same transaction, so the value
    never counts a course that is being removed.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from devcamper.exceptions import DatabaseError, NotFoundError
from devcamper.models import Bootcamp, Course
from devcamper.schemas.common import Pagination
from devcamper.schemas.course import (
    BootcampSummary,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
)
from devcamper.services.bootcamp_service import (
    BootcampService,
    bootcamp_service,
    parse_resource_id,
)
from devcamper.services.query_builder import ListQuery, QueryValue

logger = logging.getLogger(__name__)

# Columns of the parent bootcamp embedded in course documents
BOOTCAMP_SUMMARY_FIELDS = ("name", "description")


def course_document(course: Course, bootcamp: Optional[Bootcamp] = None) -> CourseResponse:
    """Build the single-course response; `bootcamp` is embedded when given."""
    summary = None
    if bootcamp is not None:
        summary = BootcampSummary(
            id=bootcamp.id,
            name=bootcamp.name,
            description=bootcamp.description,
        )
    return CourseResponse(
        id=course.id,
        title=course.title,
        description=course.description,
        weeks=course.weeks,
        tuition=course.tuition,
        minimum_skill=course.minimum_skill,
        scholarship_available=course.scholarship_available,
        created_at=course.created_at,
        bootcamp_id=course.bootcamp_id,
        bootcamp=summary,
    )


class CourseService:
    """
    Responsibilities:
        - list_courses(): all courses, or one bootcamp's courses
        - get_course(), create_course(), update_course(), delete_course()
        - average_cost() / update_average_cost(): the aggregation
    """

    def __init__(self, bootcamps: Optional[BootcampService] = None):
        self.bootcamps = bootcamps or bootcamp_service

    async def list_courses(
        self,
        db: AsyncSession,
        query_params: Mapping[str, QueryValue],
        bootcamp_id: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List courses with the parent bootcamp's name and description embedded.

        With bootcamp_id, the listing is restricted to that bootcamp, which
        must exist (404 otherwise). Default order is title ascending.
        """
        base_filters = []
        if bootcamp_id is not None:
            bootcamp = await self.bootcamps.find_bootcamp(db, bootcamp_id)
            base_filters.append(Course.bootcamp_id == bootcamp.id)

        query = ListQuery(
            Course,
            query_params,
            default_sort="title",
            populate="bootcamp",
            populate_fields=BOOTCAMP_SUMMARY_FIELDS,
            base_filters=base_filters,
        )
        try:
            return await query.execute(db)
        except SQLAlchemyError as e:
            logger.error("Database error listing courses: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve courses. Please try again.",
                context={"error_type": type(e).__name__, "bootcamp_id": bootcamp_id},
            )

    async def find_course(self, db: AsyncSession, course_id: str) -> Course:
        """Load a course with its parent bootcamp, or raise NotFoundError."""
        parsed_id = parse_resource_id("Course", course_id)
        try:
            result = await db.execute(
                select(Course)
                .options(selectinload(Course.bootcamp))
                .where(Course.id == parsed_id)
            )
            course = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching course %s: %s", course_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the course. Please try again.",
                context={"course_id": str(course_id)},
            )

        if course is None:
            raise NotFoundError(resource="Course", resource_id=str(course_id))
        return course

    async def get_course(self, db: AsyncSession, course_id: str) -> CourseResponse:
        course = await self.find_course(db, course_id)
        return course_document(course, course.bootcamp)

    async def create_course(
        self, db: AsyncSession, bootcamp_id: str, payload: CourseCreate
    ) -> CourseResponse:
        """Insert a course under an existing bootcamp, then refresh its average cost."""
        bootcamp = await self.bootcamps.find_bootcamp(db, bootcamp_id)

        course = Course(bootcamp_id=bootcamp.id, **payload.model_dump())
        db.add(course)
        await self._flush(db, "create", bootcamp_id=str(bootcamp.id))
        logger.info("Course created: %s under bootcamp %s", course.id, bootcamp.id)

        await self.update_average_cost(db, bootcamp.id)
        return course_document(course, bootcamp)

    async def update_course(
        self, db: AsyncSession, course_id: str, payload: CourseUpdate
    ) -> CourseResponse:
        course = await self.find_course(db, course_id)

        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(course, field, value)

        await self._flush(db, "update", course_id=str(course.id))
        logger.info("Course updated: %s (fields=%s)", course.id, sorted(changes))

        if "tuition" in changes:
            await self.update_average_cost(db, course.bootcamp_id)
        return course_document(course, course.bootcamp)

    async def delete_course(self, db: AsyncSession, course_id: str) -> None:
        """Load, delete, then refresh the parent bootcamp's average cost."""
        course = await self.find_course(db, course_id)
        bootcamp_id = course.bootcamp_id

        await db.delete(course)
        await self._flush(db, "delete", course_id=str(course.id))
        logger.info("Course deleted: %s from bootcamp %s", course.id, bootcamp_id)

        await self.update_average_cost(db, bootcamp_id)

    async def average_cost(self, db: AsyncSession, bootcamp_id: UUID) -> Optional[float]:
        """
        Mean tuition over the bootcamp's courses: match by parent, group by
        parent, average tuition. None when the bootcamp has no courses.
        """
        stmt = (
            select(Course.bootcamp_id, func.avg(Course.tuition).label("average_cost"))
            .where(Course.bootcamp_id == bootcamp_id)
            .group_by(Course.bootcamp_id)
        )
        row = (await db.execute(stmt)).first()
        if row is None or row.average_cost is None:
            return None
        return round(float(row.average_cost), 2)

    async def update_average_cost(self, db: AsyncSession, bootcamp_id: UUID) -> Optional[float]:
        """Recompute and persist bootcamp.average_cost; returns the stored value."""
        logger.debug("Calculating average cost for bootcamp %s", bootcamp_id)
        try:
            average = await self.average_cost(db, bootcamp_id)
            bootcamp = await db.get(Bootcamp, bootcamp_id)
            if bootcamp is not None:
                bootcamp.average_cost = average
                await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error computing average cost for %s: %s", bootcamp_id, str(e))
            raise DatabaseError(
                message="Could not update the bootcamp's average cost.",
                context={"bootcamp_id": str(bootcamp_id)},
            )

        logger.info("Bootcamp %s average cost is now %s", bootcamp_id, average)
        return average

    async def _flush(self, db: AsyncSession, action: str, **context: Any) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error on course %s: %s", action, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the course. Please try again.",
                context={"action": action, **context},
            )


course_service = CourseService()
