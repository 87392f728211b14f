from __future__ import annotations

import logging
from dataclasses import dataclass

from imagesync.domain.entities.image import ImageRecord, ImageStatus
from imagesync.domain.errors import NotFoundError
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore
from imagesync.infrastructure.storage.local_storage import LocalImageStorage

logger = logging.getLogger(__name__)


@dataclass
class RestoreImageUseCase:
    """Re-upload a locally cached file that is missing from the remote store.

    A single attempt is made; the remote id is derived from the local
    filename, so restored objects are keyed ``<timestamp>-<name>``.
    """

    local: LocalImageStorage
    remote: CloudinaryStore

    async def execute(self, filename: str) -> ImageRecord:
        if not await self.local.exists(filename):
            logger.error("Local file not found: %s", filename)
            raise NotFoundError(f"{filename} is not in the upload directory")

        path = self.local.path_for(filename)
        logger.info("Restoring %s to Cloudinary", path)
        stored = await self.remote.upload(path, filename)
        logger.info("Restore successful: %s -> %s", filename, stored.public_id)
        return ImageRecord(
            id=filename,
            filename=filename,
            original_name=filename,
            status=ImageStatus.AVAILABLE,
            can_restore=False,
            local_path=self.local.url_for(filename),
            remote_url=stored.url,
            remote_id=stored.public_id,
        )
