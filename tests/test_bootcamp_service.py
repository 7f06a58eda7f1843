"""
DevCamper API — Bootcamp Service Tests
========================================

What:  BootcampService against the in-memory database.

Test Strategy:
    ✅ Not-found on every by-id operation, including malformed ids
    ✅ Partial update, duplicate name, null for a required field
    ✅ Cascade delete removes courses and the stored photo
    ✅ Photo upload: every rejection happens before anything is written
"""

import uuid
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from conftest import bootcamp_fields, make_upload
from devcamper.exceptions import DatabaseError, NotFoundError, ValidationError
from devcamper.models import Bootcamp, Course
from devcamper.models.bootcamp import DEFAULT_PHOTO
from devcamper.schemas.bootcamp import BootcampCreate, BootcampUpdate
from devcamper.services.bootcamp_service import (
    BootcampService,
    is_unique_violation,
    parse_resource_id,
)
from devcamper.services.file_service import FileService


@pytest.fixture
def service(temp_storage):
    return BootcampService(files=FileService(upload_path=temp_storage, max_file_size=1024))


class TestParseResourceId:

    def test_valid_uuid(self):
        value = uuid.uuid4()
        assert parse_resource_id("Bootcamp", str(value)) == value

    def test_malformed_id_is_not_found(self):
        with pytest.raises(NotFoundError, match="Bootcamp not found with id of 12345"):
            parse_resource_id("Bootcamp", "12345")


class TestBootcampCrud:

    @pytest.mark.asyncio
    async def test_create_and_get(self, db_session, service):
        created = await service.create_bootcamp(db_session, BootcampCreate(**bootcamp_fields()))

        assert created.name == "Devworks Bootcamp"
        assert created.photo == DEFAULT_PHOTO
        assert created.average_cost is None

        fetched = await service.get_bootcamp(db_session, str(created.id))
        assert fetched.id == created.id
        assert fetched.careers == ["Web Development", "UI/UX", "Business"]

    @pytest.mark.asyncio
    async def test_get_missing(self, db_session, service):
        missing = str(uuid.uuid4())
        with pytest.raises(NotFoundError, match=f"Bootcamp not found with id of {missing}"):
            await service.get_bootcamp(db_session, missing)

    @pytest.mark.asyncio
    async def test_duplicate_name(self, db_session, service, make_bootcamp):
        await make_bootcamp(name="Devworks Bootcamp")

        with pytest.raises(ValidationError, match="Duplicate field value entered"):
            await service.create_bootcamp(db_session, BootcampCreate(**bootcamp_fields()))

    @pytest.mark.asyncio
    async def test_update_applies_only_sent_fields(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp()

        updated = await service.update_bootcamp(
            db_session, str(bootcamp.id), BootcampUpdate(housing=False)
        )

        assert updated.housing is False
        assert updated.name == "Devworks Bootcamp"
        assert updated.job_assistance is True

    @pytest.mark.asyncio
    async def test_update_missing(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.update_bootcamp(
                db_session, str(uuid.uuid4()), BootcampUpdate(name="Anything")
            )

    def test_update_schema_rejects_null(self):
        with pytest.raises(PydanticValidationError, match="may not be null"):
            BootcampUpdate(description=None)

    def test_update_schema_allows_clearing_contact_fields(self):
        assert BootcampUpdate(website=None).model_dump(exclude_unset=True) == {"website": None}

    @pytest.mark.asyncio
    async def test_not_null_failure_is_not_a_duplicate(self, db_session, service, make_bootcamp):
        bootcamp = await make_bootcamp()

        with pytest.raises(DatabaseError):
            await service.update_bootcamp(
                db_session, str(bootcamp.id), BootcampUpdate.model_construct(description=None)
            )

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session, service):
        with pytest.raises(NotFoundError):
            await service.delete_bootcamp(db_session, "not-an-id")


class TestUniqueViolation:

    class DriverError(Exception):
        def __init__(self, message, sqlstate=None):
            super().__init__(message)
            self.sqlstate = sqlstate

    def error(self, message, sqlstate=None):
        return IntegrityError("INSERT ...", {}, self.DriverError(message, sqlstate))

    def test_postgres_unique_code(self):
        assert is_unique_violation(self.error("duplicate key", sqlstate="23505"))

    def test_postgres_not_null_code(self):
        assert not is_unique_violation(self.error("null value in column", sqlstate="23502"))

    def test_sqlite_messages(self):
        assert is_unique_violation(self.error("UNIQUE constraint failed: bootcamps.name"))
        assert not is_unique_violation(self.error("NOT NULL constraint failed: bootcamps.description"))


class TestCascadeDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_courses(self, db_session, service, make_bootcamp, make_course):
        doomed = await make_bootcamp(name="Doomed")
        kept = await make_bootcamp(name="Kept")
        await make_course(doomed, title="One")
        await make_course(doomed, title="Two")
        await make_course(kept, title="Three")

        await service.delete_bootcamp(db_session, str(doomed.id))

        remaining = (await db_session.execute(select(Course.title))).scalars().all()
        assert remaining == ["Three"]
        bootcamps = (await db_session.execute(select(func.count()).select_from(Bootcamp))).scalar()
        assert bootcamps == 1

    @pytest.mark.asyncio
    async def test_delete_removes_stored_photo(self, db_session, service, make_bootcamp, temp_storage):
        bootcamp = await make_bootcamp(photo="photo_custom.jpg")
        photo_path = Path(temp_storage) / "photo_custom.jpg"
        photo_path.write_bytes(b"img")

        await service.delete_bootcamp(db_session, str(bootcamp.id))

        assert not photo_path.exists()


class TestPhotoUpload:

    @pytest.mark.asyncio
    async def test_upload_stores_and_records(
        self, db_session, service, make_bootcamp, sample_image_bytes, temp_storage
    ):
        bootcamp = await make_bootcamp()

        name = await service.upload_photo(
            db_session, str(bootcamp.id), make_upload("Me.PNG", sample_image_bytes, "image/png")
        )

        assert name == f"photo_{bootcamp.id}.PNG"
        assert (Path(temp_storage) / name).read_bytes() == sample_image_bytes
        assert bootcamp.photo == name

    @pytest.mark.asyncio
    async def test_missing_bootcamp_checked_first(self, db_session, service, temp_storage):
        with pytest.raises(NotFoundError):
            await service.upload_photo(db_session, str(uuid.uuid4()), None)
        assert list(Path(temp_storage).iterdir()) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "upload, message",
        [
            (None, "Please upload a file"),
            (make_upload("notes.txt", b"hello", "text/plain"), "Uploaded file is not an image"),
            (make_upload("big.jpg", b"x" * 2048), "Please upload an image less than 1024"),
        ],
    )
    async def test_rejections_write_nothing(
        self, db_session, service, make_bootcamp, temp_storage, upload, message
    ):
        bootcamp = await make_bootcamp()

        with pytest.raises(ValidationError, match=message):
            await service.upload_photo(db_session, str(bootcamp.id), upload)

        assert list(Path(temp_storage).iterdir()) == []
        assert bootcamp.photo == DEFAULT_PHOTO
