"""
DevCamper API: Photo Storage
=============================

What:  Validates and stores bootcamp photos.
How:   Checks the size, then the real MIME type read from the content's
       magic bytes, then writes the bytes with aiofiles under
       FILE_UPLOAD_PATH, which main.py also serves at /uploads.
Who:   Called by bootcamp_service.upload_photo.

Validation order:
    1. Size check:  cheapest, rejects oversized uploads before sniffing
    2. MIME check:  python-magic inspects the header bytes; the declared
                    Content-Type and the client's filename are not trusted

Naming:
    photo_<bootcamp id><extension of the detected type>, e.g.
    photo_5d725a1b-7b29-4a8b-9f0c-1a2b3c4d5e6f.jpg
    A new upload for the same bootcamp replaces the previous file. Nothing
    from the client's filename reaches the stored path, so the static mount
    only ever serves image types.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import magic

from devcamper.config import settings
from devcamper.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

# Detected MIME type → stored extension
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


class FileService:
    def __init__(self, upload_root: Optional[str] = None, max_size: Optional[int] = None):
        """
        Args:
            upload_root: Override the upload directory (used in tests).
            max_size:    Override the byte limit (used in tests).
        """
        self.upload_root = Path(upload_root or settings.file_upload_path).resolve()
        self.max_size = max_size or settings.max_file_upload

    def validate_size(self, size: int) -> None:
        if size > self.max_size:
            raise ValidationError(
                f"Please upload an image less than {self.max_size}",
                field="file",
                context={"size": size, "max_size": self.max_size},
            )

    def detect_image_type(self, content: bytes, declared_type: Optional[str] = None) -> str:
        """
        Sniff the MIME type from the file header bytes.

        Returns:
            Detected MIME type, one of ALLOWED_IMAGE_TYPES

        Raises:
            ValidationError:  content is not a supported image
            FileStorageError: libmagic failed to inspect the content
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(context={"error": str(e)})

        if mime_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(
                "Please upload an image file",
                field="file",
                context={"detected_type": mime_type, "declared_type": declared_type},
            )
        if declared_type and declared_type != mime_type:
            logger.info("Declared type %s differs from detected %s", declared_type, mime_type)
        return mime_type

    @staticmethod
    def photo_filename(bootcamp_id: uuid.UUID, mime_type: str) -> str:
        return f"photo_{bootcamp_id}{ALLOWED_IMAGE_TYPES[mime_type]}"

    async def store_photo(
        self,
        bootcamp_id: uuid.UUID,
        content: bytes,
        declared_type: Optional[str] = None,
    ) -> str:
        """
        Validate and write a photo. Returns the stored filename.

        Raises:
            ValidationError:  not an image, or larger than the limit
            FileStorageError: the file could not be inspected or written
        """
        self.validate_size(len(content))
        mime_type = self.detect_image_type(content, declared_type)
        filename = self.photo_filename(bootcamp_id, mime_type)
        path = self.upload_root / filename

        try:
            self.upload_root.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store photo at %s: %s", path, str(e))
            raise FileStorageError(context={"path": str(path), "os_error": str(e)})

        logger.info("Photo stored: %s (%s, %d bytes)", filename, mime_type, len(content))
        return filename


file_service = FileService()
