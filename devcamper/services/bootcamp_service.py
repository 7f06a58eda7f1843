"""
DevCamper API — Bootcamp Service
==================================

What:  Business logic for bootcamps: listing, single fetch, create, update,
       cascade delete and photo upload.
Who:   Called by the bootcamp route handlers.

Error Handling Strategy:
    - A lookup that matches nothing raises NotFoundError. A malformed id
      gets the same message, so clients cannot tell "bad id" from "no such id".
    - IntegrityError on insert/update (duplicate name) becomes a
      ValidationError with the duplicate-value message.
    - Any other SQLAlchemyError is logged with its context and wrapped in
      DatabaseError, which the handler renders with a generic message.
    - Our own exceptions (ValidationError, FileStorageError, ...) propagate
      untouched.

Design Decision:
    BootcampService is stateless apart from the FileService it is handed;
    the session comes in with each call and the transaction boundary is the
    request (see database.get_db_session).
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.exceptions import DatabaseError, NotFoundError, ValidationError
from devcamper.models import Bootcamp, Course
from devcamper.models.bootcamp import DEFAULT_PHOTO
from devcamper.schemas.bootcamp import BootcampCreate, BootcampResponse, BootcampUpdate
from devcamper.schemas.common import Pagination
from devcamper.services.file_service import FileService, file_service
from devcamper.services.query_builder import ListQuery, QueryValue

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Duplicate field value entered"

# SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """
    True when the integrity error comes from a unique constraint.

    PostgreSQL drivers report the SQLSTATE; SQLite only has the message
    ("UNIQUE constraint failed: bootcamps.name").
    """
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "unique" in str(orig).lower()


def parse_resource_id(resource: str, value: str) -> UUID:
    """
    Parse a path identifier.

    A value that is not a UUID cannot match any record, so it is reported
    as Not-Found rather than as a malformed request.
    """
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise NotFoundError(resource=resource, resource_id=str(value))


def bootcamp_document(bootcamp: Bootcamp) -> BootcampResponse:
    """Build the single-document response from a fully loaded Bootcamp row."""
    return BootcampResponse(
        id=bootcamp.id,
        name=bootcamp.name,
        description=bootcamp.description,
        website=bootcamp.website,
        phone=bootcamp.phone,
        email=bootcamp.email,
        address=bootcamp.address,
        careers=list(bootcamp.careers or []),
        average_rating=bootcamp.average_rating,
        average_cost=bootcamp.average_cost,
        photo=bootcamp.photo,
        housing=bootcamp.housing,
        job_assistance=bootcamp.job_assistance,
        job_guarantee=bootcamp.job_guarantee,
        accept_gi=bootcamp.accept_gi,
        created_at=bootcamp.created_at,
    )


class BootcampService:
    """
    Responsibilities:
        - list_bootcamps(): filtered/projected/sorted/paginated listing, courses populated
        - get_bootcamp(): single fetch, 404 if missing
        - create_bootcamp(), update_bootcamp()
        - delete_bootcamp(): load, then remove_with_cascade()
        - upload_photo(): validate and store, then record the filename
    """

    def __init__(self, files: Optional[FileService] = None):
        self.files = files or file_service

    async def list_bootcamps(
        self,
        db: AsyncSession,
        query_params: Mapping[str, QueryValue],
    ) -> Tuple[List[Dict[str, Any]], Pagination]:
        """
        List bootcamps, each with its courses embedded.

        Query semantics are ListQuery's; default order is name ascending.
        """
        query = ListQuery(
            Bootcamp,
            query_params,
            default_sort="name",
            populate="courses",
        )
        try:
            return await query.execute(db)
        except SQLAlchemyError as e:
            logger.error("Database error listing bootcamps: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve bootcamps. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def find_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> Bootcamp:
        """
        Load a bootcamp row or raise NotFoundError.

        Shared by every by-id operation, including course creation under a
        bootcamp.
        """
        parsed_id = parse_resource_id("Bootcamp", bootcamp_id)
        try:
            result = await db.execute(select(Bootcamp).where(Bootcamp.id == parsed_id))
            bootcamp = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching bootcamp %s: %s", bootcamp_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the bootcamp. Please try again.",
                context={"bootcamp_id": str(bootcamp_id)},
            )

        if bootcamp is None:
            raise NotFoundError(resource="Bootcamp", resource_id=str(bootcamp_id))
        return bootcamp

    async def get_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> BootcampResponse:
        bootcamp = await self.find_bootcamp(db, bootcamp_id)
        return bootcamp_document(bootcamp)

    async def create_bootcamp(
        self, db: AsyncSession, payload: BootcampCreate
    ) -> BootcampResponse:
        bootcamp = Bootcamp(**payload.model_dump())
        db.add(bootcamp)
        await self._flush(db, "create", bootcamp_name=payload.name)
        logger.info("Bootcamp created: %s (%s)", bootcamp.id, bootcamp.name)
        return bootcamp_document(bootcamp)

    async def update_bootcamp(
        self, db: AsyncSession, bootcamp_id: str, payload: BootcampUpdate
    ) -> BootcampResponse:
        """Fetch, then apply only the fields present in the request body."""
        bootcamp = await self.find_bootcamp(db, bootcamp_id)

        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(bootcamp, field, value)

        await self._flush(db, "update", bootcamp_id=str(bootcamp.id))
        logger.info("Bootcamp updated: %s (fields=%s)", bootcamp.id, sorted(changes))
        return bootcamp_document(bootcamp)

    async def delete_bootcamp(self, db: AsyncSession, bootcamp_id: str) -> None:
        """
        Two-step delete: load the bootcamp (404 if missing), then cascade.

        The load comes first so the cascade knows what it is removing; a
        blind DELETE by id could not clean up the bootcamp's courses or photo.
        """
        bootcamp = await self.find_bootcamp(db, bootcamp_id)
        await self.remove_with_cascade(db, bootcamp)

    async def remove_with_cascade(self, db: AsyncSession, bootcamp: Bootcamp) -> None:
        """
        Remove a loaded bootcamp together with everything that depends on it.

        Order:
            1. DELETE its courses
            2. DELETE the bootcamp
            3. Remove the stored photo file (best-effort)
        """
        bootcamp_id = bootcamp.id
        photo = bootcamp.photo
        try:
            removed = await db.execute(delete(Course).where(Course.bootcamp_id == bootcamp_id))
            await db.execute(delete(Bootcamp).where(Bootcamp.id == bootcamp_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting bootcamp %s: %s", bootcamp_id, str(e))
            raise DatabaseError(
                message="Could not delete the bootcamp. Please try again.",
                context={"bootcamp_id": str(bootcamp_id)},
            )

        logger.info(
            "Bootcamp deleted: %s (cascade removed %d courses)",
            bootcamp_id,
            removed.rowcount,
        )

        if photo and photo != DEFAULT_PHOTO:
            await self.files.cleanup_file(photo)

    async def upload_photo(
        self,
        db: AsyncSession,
        bootcamp_id: str,
        upload: Optional[UploadFile],
    ) -> str:
        """
        Store a bootcamp photo and record its filename.

        Every check (existence, presence, MIME type, size) runs before the
        write; the bootcamp row is only updated after the write completed.

        Returns:
            The stored filename, photo_<bootcampId><ext>.
        """
        bootcamp = await self.find_bootcamp(db, bootcamp_id)

        name = await self.files.validate_and_store(bootcamp.id, upload)

        bootcamp.photo = name
        await self._flush(db, "photo", bootcamp_id=str(bootcamp.id))
        logger.info("Bootcamp %s photo set to %s", bootcamp.id, name)
        return name

    async def _flush(self, db: AsyncSession, action: str, **context: Any) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            if not is_unique_violation(e):
                logger.error("Integrity error on bootcamp %s: %s", action, str(e.orig))
                raise DatabaseError(
                    message="Could not save the bootcamp. Please try again.",
                    context={"action": action, **context},
                )
            logger.warning("Duplicate value on bootcamp %s: %s", action, str(e.orig))
            raise ValidationError(
                message=DUPLICATE_MESSAGE,
                context={"action": action, **context},
            )
        except SQLAlchemyError as e:
            logger.error("Database error on bootcamp %s: %s", action, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the bootcamp. Please try again.",
                context={"action": action, **context},
            )


bootcamp_service = BootcampService()
