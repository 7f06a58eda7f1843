"""
DevCamper API — Course Service Tests
======================================

What:  Course CRUD and the average-cost aggregation.

Test Strategy:
    ✅ average_cost follows every create, tuition update and delete
    ✅ last course removed → average_cost back to None
    ✅ nested listing requires an existing bootcamp
"""

import uuid

import pytest

from conftest import course_fields
from devcamper.exceptions import NotFoundError
from devcamper.schemas.course import CourseCreate, CourseUpdate
from devcamper.services.course_service import CourseService


@pytest.fixture
def service():
    return CourseService()


class TestAverageCost:

    @pytest.mark.asyncio
    async def test_no_courses(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp()
        assert await service.average_cost(db_session, bootcamp.id) is None

    @pytest.mark.asyncio
    async def test_rounded_mean(self, db_session, service, make_bootcamp, make_course):
        bootcamp = await make_bootcamp()
        await make_course(bootcamp, tuition=1000.0)
        await make_course(bootcamp, tuition=2000.0)
        await make_course(bootcamp, tuition=2500.0)

        assert await service.average_cost(db_session, bootcamp.id) == 1833.33

    @pytest.mark.asyncio
    async def test_scoped_to_one_bootcamp(self, db_session, service, make_bootcamp, make_course):
        first = await make_bootcamp(name="First")
        second = await make_bootcamp(name="Second")
        await make_course(first, tuition=1000.0)
        await make_course(second, tuition=9000.0)

        assert await service.update_average_cost(db_session, first.id) == 1000.0
        assert first.average_cost == 1000.0
        assert second.average_cost is None

    @pytest.mark.asyncio
    async def test_follows_create_update_delete(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp()

        first = await service.create_course(
            db_session, str(bootcamp.id), CourseCreate(**course_fields(tuition=4000.0))
        )
        assert bootcamp.average_cost == 4000.0

        await service.create_course(
            db_session,
            str(bootcamp.id),
            CourseCreate(**course_fields(title="Back End", tuition=6000.0)),
        )
        assert bootcamp.average_cost == 5000.0

        await service.update_course(db_session, str(first.id), CourseUpdate(tuition=8000.0))
        assert bootcamp.average_cost == 7000.0

        await service.delete_course(db_session, str(first.id))
        assert bootcamp.average_cost == 6000.0

    @pytest.mark.asyncio
    async def test_last_course_removed(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp()
        course = await service.create_course(
            db_session, str(bootcamp.id), CourseCreate(**course_fields())
        )

        await service.delete_course(db_session, str(course.id))

        assert bootcamp.average_cost is None


class TestCourseCrud:

    @pytest.mark.asyncio
    async def test_create_embeds_bootcamp(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp(name="Alpha")

        created = await service.create_course(
            db_session, str(bootcamp.id), CourseCreate(**course_fields())
        )

        assert created.bootcamp_id == bootcamp.id
        assert created.bootcamp.name == "Alpha"

    @pytest.mark.asyncio
    async def test_create_under_missing_bootcamp(self, db_session, service):
        missing = str(uuid.uuid4())
        with pytest.raises(NotFoundError, match=f"Bootcamp not found with id of {missing}"):
            await service.create_course(db_session, missing, CourseCreate(**course_fields()))

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session, service):
        with pytest.raises(NotFoundError, match="Course not found"):
            await service.get_course(db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_update_without_tuition_keeps_average(
        self, db_session, service, make_bootcamp, make_course
    ):
        bootcamp = await make_bootcamp(average_cost=1234.0)
        course = await make_course(bootcamp)

        updated = await service.update_course(
            db_session, str(course.id), CourseUpdate(title="Renamed")
        )

        assert updated.title == "Renamed"
        assert bootcamp.average_cost == 1234.0

    @pytest.mark.asyncio
    async def test_list_for_bootcamp(self, db_session, service, make_bootcamp, make_course):
        alpha = await make_bootcamp(name="Alpha")
        bravo = await make_bootcamp(name="Bravo")
        await make_course(alpha, title="B course")
        await make_course(alpha, title="A course")
        await make_course(bravo, title="C course")

        documents, pagination = await service.list_courses(
            db_session, {}, bootcamp_id=str(alpha.id)
        )

        assert [doc["title"] for doc in documents] == ["A course", "B course"]
        assert all(doc["bootcamp"]["name"] == "Alpha" for doc in documents)
        assert pagination.model_dump() == {}

    @pytest.mark.asyncio
    async def test_list_for_missing_bootcamp(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.list_courses(db_session, {}, bootcamp_id=str(uuid.uuid4()))
