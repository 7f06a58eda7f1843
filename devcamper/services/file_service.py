"""
DevCamper API — Photo Upload Storage Service
==============================================

What:  Validates an uploaded bootcamp photo and writes it to the upload directory.
Why:   Keeps every file-system operation, and every rule about what may be
       written, in one place.
How:   Checks run cheapest-first and all of them before anything touches
       the disk. The stored name is derived from the bootcamp id, so a
       second upload for the same bootcamp replaces the first instead of
       piling up files.
Who:   Called by BootcampService.upload_photo and remove_with_cascade.

Validation order:
    1. A file was actually sent        → 400 "Please upload a file"
    2. Declared MIME type is image/*   → 400 "Uploaded file is not an image"
    3. Size within max_file_size       → 400 "Please upload an image less than N"
       (the declared part size is checked before the body is read, the
       byte count after, since a client can under-report)
    4. Write photo_<id><ext>           → 500 "Problem with file upload" on OSError

Configuration:
    The upload directory and size limit are constructor arguments. The
    module-level `file_service` is built from settings; tests build their
    own instance against a temporary directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union
from uuid import UUID

import aiofiles
from fastapi import UploadFile

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)


class FileService:
    """
    Manages the bootcamp photo lifecycle on disk.

    Directory Structure:
        public/uploads/
        ├── photo_3f1c...e9.jpg
        └── photo_8a02...41.png

    One flat directory: the number of files is bounded by the number of
    bootcamps, and the names are served directly under /uploads.
    """

    def __init__(
        self,
        upload_path: Optional[str] = None,
        max_file_size: Optional[int] = None,
    ):
        """
        Args:
            upload_path:   Directory photos are written to.
                           Defaults to settings.file_upload_path.
            max_file_size: Largest accepted upload in bytes.
                           Defaults to settings.max_file_upload.
        """
        self.upload_path = Path(upload_path or settings.file_upload_path).resolve()
        self.max_file_size = max_file_size or settings.max_file_upload
        self.upload_path.mkdir(parents=True, exist_ok=True)
        logger.info(
            "FileService initialized with upload_path=%s max_file_size=%d",
            self.upload_path,
            self.max_file_size,
        )

    def validate_presence(self, upload: Optional[UploadFile]) -> None:
        """Rejects a request that carried no file (or an unnamed empty part)."""
        if upload is None or not upload.filename:
            raise ValidationError(message="Please upload a file", field="file")

    def validate_mime_type(self, content_type: Optional[str]) -> None:
        """
        Only image uploads are accepted.

        The check uses the MIME type declared in the multipart part header,
        the same signal a browser sets from the chosen file.
        """
        if not content_type or not content_type.startswith("image"):
            raise ValidationError(
                message="Uploaded file is not an image",
                field="file",
                context={"content_type": content_type},
            )

    def validate_size(self, size: int) -> None:
        """Rejects uploads larger than max_file_size bytes."""
        if size > self.max_file_size:
            raise ValidationError(
                message=f"Please upload an image less than {self.max_file_size}",
                field="file",
                context={"max_file_size": self.max_file_size, "actual_size": size},
            )

    @staticmethod
    def build_photo_name(bootcamp_id: Union[UUID, str], filename: str) -> str:
        """
        photo_<bootcampId><ext>, where ext is the original last extension.

        The extension is kept exactly as sent: "Me.PNG" → ".PNG",
        "archive.tar.gz" → ".gz", "README" → "".
        """
        return f"photo_{bootcamp_id}{Path(filename).suffix}"

    async def store_file(self, name: str, content: bytes) -> Path:
        """
        Write the photo into the upload directory.

        The caller must not record the filename anywhere until this returns.

        Raises:
            FileStorageError if the directory or the write fails.
        """
        target = self.upload_path / name
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store upload at %s: %s", target, str(e))
            raise FileStorageError(
                context={"path": str(target), "os_error": str(e)},
            )

        logger.info("Photo stored: %s (%d bytes)", name, len(content))
        return target

    async def cleanup_file(self, name: str) -> None:
        """
        Remove a stored photo, if present.

        Best-effort: used after a bootcamp is deleted, where a leftover file
        is not worth failing the request over. Failures are logged.
        """
        path = self.upload_path / name
        try:
            if path.exists():
                os.remove(path)
                logger.info("Removed photo: %s", name)
            else:
                logger.debug("Cleanup: photo already gone: %s", name)
        except OSError as e:
            logger.warning("Failed to remove photo %s: %s", name, str(e))

    async def validate_and_store(
        self,
        bootcamp_id: Union[UUID, str],
        upload: Optional[UploadFile],
    ) -> str:
        """
        Complete upload pipeline: validate, read, rename, write.

        An upload whose declared size is over the limit is rejected without
        reading its body into memory.

        Returns:
            The stored filename (photo_<id><ext>).
        """
        self.validate_presence(upload)
        self.validate_mime_type(upload.content_type)
        if upload.size is not None:
            self.validate_size(upload.size)

        content = await upload.read()
        self.validate_size(len(content))

        name = self.build_photo_name(bootcamp_id, upload.filename)
        await self.store_file(name, content)
        return name


file_service = FileService()
