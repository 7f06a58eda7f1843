"""
DevCamper API — Bootcamp Route Handlers
=========================================

What:  /api/v1/bootcamps endpoints.
How:   Thin handlers: pull data off the request, call BootcampService,
       wrap the result in the response envelope. Errors are raised by the
       service and rendered by the global exception handlers.

Routes:
    GET    /api/v1/bootcamps               list (filter, select, sort, page, limit)
    GET    /api/v1/bootcamps/{id}          single bootcamp
    POST   /api/v1/bootcamps               create
    PUT    /api/v1/bootcamps/{id}          update
    DELETE /api/v1/bootcamps/{id}          delete with course cascade
    PUT    /api/v1/bootcamps/{id}/photo    upload photo (multipart field `file`)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from devcamper.database import get_db_session
from devcamper.schemas.bootcamp import BootcampCreate, BootcampEnvelope, BootcampUpdate
from devcamper.schemas.common import (
    EmptyEnvelope,
    ErrorResponse,
    ListEnvelope,
    PhotoEnvelope,
)
from devcamper.services.bootcamp_service import bootcamp_service
from devcamper.services.query_builder import query_map_from_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bootcamps", tags=["Bootcamps"])

NOT_FOUND = {404: {"description": "Bootcamp not found", "model": ErrorResponse}}


@router.get(
    "",
    response_model=ListEnvelope,
    summary="List bootcamps",
    description=(
        "Filter on any bootcamp field (`housing=true`, `average_cost[lte]=10000`), "
        "project with `select=name,description`, order with `sort=-average_cost`, "
        "paginate with `page` and `limit`. Each bootcamp embeds its courses."
    ),
)
async def get_bootcamps(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> ListEnvelope:
    # Read the raw query map: filter keys are open-ended, so they cannot be
    # declared as Query() parameters.
    documents, pagination = await bootcamp_service.list_bootcamps(
        db, query_map_from_params(request.query_params)
    )
    return ListEnvelope(count=len(documents), pagination=pagination, data=documents)


@router.get(
    "/{bootcamp_id}",
    response_model=BootcampEnvelope,
    responses=NOT_FOUND,
    summary="Get a single bootcamp",
)
async def get_bootcamp(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> BootcampEnvelope:
    return BootcampEnvelope(data=await bootcamp_service.get_bootcamp(db, bootcamp_id))


@router.post(
    "",
    status_code=201,
    response_model=BootcampEnvelope,
    responses={400: {"description": "Invalid or duplicate bootcamp", "model": ErrorResponse}},
    summary="Create a bootcamp",
)
async def create_bootcamp(
    payload: BootcampCreate,
    db: AsyncSession = Depends(get_db_session),
) -> BootcampEnvelope:
    return BootcampEnvelope(data=await bootcamp_service.create_bootcamp(db, payload))


@router.put(
    "/{bootcamp_id}",
    response_model=BootcampEnvelope,
    responses=NOT_FOUND,
    summary="Update a bootcamp",
)
async def put_bootcamp(
    bootcamp_id: str,
    payload: BootcampUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> BootcampEnvelope:
    return BootcampEnvelope(
        data=await bootcamp_service.update_bootcamp(db, bootcamp_id, payload)
    )


@router.delete(
    "/{bootcamp_id}",
    response_model=EmptyEnvelope,
    responses=NOT_FOUND,
    summary="Delete a bootcamp and its courses",
)
async def delete_bootcamp(
    bootcamp_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> EmptyEnvelope:
    await bootcamp_service.delete_bootcamp(db, bootcamp_id)
    return EmptyEnvelope()


@router.put(
    "/{bootcamp_id}/photo",
    response_model=PhotoEnvelope,
    responses={
        400: {"description": "Missing, non-image or oversized file", "model": ErrorResponse},
        404: {"description": "Bootcamp not found", "model": ErrorResponse},
        500: {"description": "Problem with file upload", "model": ErrorResponse},
    },
    summary="Upload a bootcamp photo",
)
async def upload_bootcamp_photo(
    bootcamp_id: str,
    file: Optional[UploadFile] = File(default=None, description="Image file"),
    db: AsyncSession = Depends(get_db_session),
) -> PhotoEnvelope:
    """
    The file is optional at the FastAPI level so a missing upload reaches
    the service and gets the "Please upload a file" message instead of a
    schema error. The body is read by FileService, after the cheap checks.
    """
    if file is None:
        name = await bootcamp_service.upload_photo(db, bootcamp_id, None)
        return PhotoEnvelope(data=name)

    logger.info(
        "Received photo upload for bootcamp %s: filename=%s, declared size=%s bytes",
        bootcamp_id,
        file.filename or "unknown",
        file.size,
    )
    try:
        name = await bootcamp_service.upload_photo(db, bootcamp_id, file)
    finally:
        await file.close()

    return PhotoEnvelope(data=name)
