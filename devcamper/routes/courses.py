"""
DevCamper API — Course Route Handlers
=======================================

Routes:
    GET    /api/v1/courses                        list all courses
    GET    /api/v1/bootcamps/{id}/courses         list one bootcamp's courses
    POST   /api/v1/bootcamps/{id}/courses         create a course under a bootcamp
    GET    /api/v1/courses/{id}                   single course
    PUT    /api/v1/courses/{id}                   update
    DELETE /api/v1/courses/{id}                   delete

Listing accepts the same query grammar as bootcamps (see query_builder).
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.schemas.common import EmptyEnvelope, ErrorResponse, ListEnvelope
from devcamper.schemas.course import CourseCreate, CourseEnvelope, CourseUpdate
from devcamper.services.course_service import course_service
from devcamper.services.query_builder import query_map_from_params

router = APIRouter(prefix="/api/v1", tags=["Courses"])

NOT_FOUND = {404: {"description": "Course or bootcamp not found", "model": ErrorResponse}}


@router.get("/courses", response_model=ListEnvelope, summary="List courses")
async def get_courses(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    documents, pagination = await course_service.list_courses(
        db, query_map_from_params(request.query_params)
    )
    return ListEnvelope(count=len(documents), pagination=pagination, data=documents)


@router.get(
    "/bootcamps/{bootcamp_id}/courses",
    response_model=ListEnvelope,
    responses=NOT_FOUND,
    summary="List the courses of one bootcamp",
)
async def get_bootcamp_courses(
    bootcamp_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    documents, pagination = await course_service.list_courses(
        db, query_map_from_params(request.query_params), bootcamp_id=bootcamp_id
    )
    return ListEnvelope(count=len(documents), pagination=pagination, data=documents)


@router.post(
    "/bootcamps/{bootcamp_id}/courses",
    status_code=201,
    response_model=CourseEnvelope,
    responses=NOT_FOUND,
    summary="Add a course to a bootcamp",
)
async def create_course(
    bootcamp_id: str,
    payload: CourseCreate,
    db: AsyncSession = Depends(get_db_session),
) -> CourseEnvelope:
    return CourseEnvelope(data=await course_service.create_course(db, bootcamp_id, payload))


@router.get(
    "/courses/{course_id}",
    response_model=CourseEnvelope,
    responses=NOT_FOUND,
    summary="Get a single course",
)
async def get_course(
    course_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> CourseEnvelope:
    return CourseEnvelope(data=await course_service.get_course(db, course_id))


@router.put(
    "/courses/{course_id}",
    response_model=CourseEnvelope,
    responses=NOT_FOUND,
    summary="Update a course",
)
async def put_course(
    course_id: str,
    payload: CourseUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> CourseEnvelope:
    return CourseEnvelope(data=await course_service.update_course(db, course_id, payload))


@router.delete(
    "/courses/{course_id}",
    response_model=EmptyEnvelope,
    responses=NOT_FOUND,
    summary="Delete a course",
)
async def delete_course(
    course_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> EmptyEnvelope:
    await course_service.delete_course(db, course_id)
    return EmptyEnvelope()
