from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from imagesync.domain.entities.image import ImageRecord, ImageStatus, RemoteObject
from imagesync.domain.errors import RemoteUploadFault, StorageFault, ValidationError
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore
from imagesync.infrastructure.storage.local_storage import LocalImageStorage

logger = logging.getLogger(__name__)


class UploadState(str, Enum):
    RECEIVED = "received"
    LOCALLY_STORED = "locally_stored"
    REMOTE_UPLOAD_PENDING = "remote_upload_pending"
    REMOTE_UPLOAD_OK = "remote_upload_ok"
    REMOTE_UPLOAD_FAILED = "remote_upload_failed"


def validate_image_payload(data: bytes, content_type: str | None, max_bytes: int) -> None:
    """Reject non-image content types, empty payloads and oversized files.

    Formats Pillow cannot read (SVG, HEIC, ...) are still accepted; the
    decode attempt only feeds the log.
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValidationError(
            f"Unsupported content type: {content_type}", error="Only image files are allowed"
        )
    if not data:
        raise ValidationError("Uploaded file is empty", error="No file uploaded")
    if len(data) > max_bytes:
        raise ValidationError(
            f"File is {len(data)} bytes, limit is {max_bytes}", error="File too large"
        )
    try:
        with Image.open(BytesIO(data)) as img:
            img.verify()
            logger.debug("Upload decoded as %s %sx%s", img.format, *img.size)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        logger.info("Pillow cannot decode %s upload, storing as-is: %s", content_type, exc)


@dataclass
class UploadImageUseCase:
    """Store an upload locally, push it to the remote store, roll back on failure.

    RECEIVED -> LOCALLY_STORED -> REMOTE_UPLOAD_PENDING -> REMOTE_UPLOAD_OK
                                                        -> REMOTE_UPLOAD_FAILED
    """

    local: LocalImageStorage
    remote: CloudinaryStore
    max_upload_bytes: int = 5 * 1024 * 1024
    max_attempts: int = 3
    backoff_seconds: float = 1.0
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)

    def _transition(self, filename: str, state: UploadState) -> None:
        logger.info("Upload %s: %s", filename, state.value)

    async def execute(self, data: bytes, original_name: str, content_type: str | None) -> ImageRecord:
        validate_image_payload(data, content_type, self.max_upload_bytes)
        filename = self.local.build_filename(original_name)
        self._transition(filename, UploadState.RECEIVED)

        path = await self.local.save(filename, data)
        if not await self.local.exists(filename):
            logger.error("Local file not found after upload: %s", path)
            raise StorageFault(f"{path} missing after write")
        self._transition(filename, UploadState.LOCALLY_STORED)

        try:
            self._transition(filename, UploadState.REMOTE_UPLOAD_PENDING)
            stored = await self._upload_with_retry(path, original_name)
        except Exception:
            self._transition(filename, UploadState.REMOTE_UPLOAD_FAILED)
            await self._rollback(filename)
            raise
        self._transition(filename, UploadState.REMOTE_UPLOAD_OK)

        return ImageRecord(
            id=filename,
            filename=filename,
            original_name=original_name,
            status=ImageStatus.AVAILABLE,
            can_restore=False,
            local_path=self.local.url_for(filename),
            remote_url=stored.url,
            remote_id=stored.public_id,
            size=len(data),
            created_at=datetime.now(UTC),
        )

    async def _upload_with_retry(self, path: Path, original_name: str) -> RemoteObject:
        attempt = 0
        while True:
            attempt += 1
            try:
                logger.info("Uploading to Cloudinary (attempt %d)...", attempt)
                return await self.remote.upload(path, original_name)
            except RemoteUploadFault as exc:
                logger.warning("Cloudinary upload attempt %d failed: %s", attempt, exc)
                if attempt >= self.max_attempts:
                    raise RemoteUploadFault(
                        f"Failed to upload to Cloudinary after {self.max_attempts} attempts: {exc}"
                    ) from exc
                await self.sleep(self.backoff_seconds * attempt)

    async def _rollback(self, filename: str) -> None:
        try:
            if await self.local.delete(filename):
                logger.info("Cleaned up local file after failed upload: %s", filename)
        except Exception:
            logger.exception("Failed to clean up local file: %s", filename)
