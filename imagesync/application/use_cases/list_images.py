from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import PurePath

from imagesync.domain.entities.image import ImageRecord, ImageStatus, ProbeResult
from imagesync.domain.services.identifier_resolver import candidate_ids
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore
from imagesync.infrastructure.storage.local_storage import LocalImageStorage

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")


def has_image_extension(filename: str, extensions=DEFAULT_IMAGE_EXTENSIONS) -> bool:
    return PurePath(filename).suffix.lower() in {ext.lower() for ext in extensions}


async def resolve_remote(remote: CloudinaryStore, filename: str) -> ProbeResult:
    """Probe each identifier candidate in order; first hit wins."""
    for public_id in candidate_ids(filename):
        result = await remote.probe_exists(public_id)
        if result.exists:
            return result
        logger.debug("No remote object for %s under %r", filename, public_id)
    return ProbeResult.not_found()


@dataclass
class ListImagesUseCase:
    """Reconcile the upload directory against the remote store.

    Every call re-probes both stores; nothing is cached between calls.
    """

    local: LocalImageStorage
    remote: CloudinaryStore
    image_extensions: tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    concurrency: int = 8

    async def execute(self) -> list[ImageRecord]:
        filenames = [
            name for name in await self.local.scan() if has_image_extension(name, self.image_extensions)
        ]
        logger.info("Reconciling %d local images", len(filenames))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _bounded(name: str) -> ImageRecord:
            async with semaphore:
                return await self.classify(name)

        return list(await asyncio.gather(*(_bounded(name) for name in filenames)))

    async def classify(self, filename: str) -> ImageRecord:
        try:
            info = await self.local.stat(filename)
            probe = await resolve_remote(self.remote, filename)
            if probe.exists:
                return ImageRecord(
                    id=filename,
                    filename=filename,
                    original_name=filename,
                    status=ImageStatus.AVAILABLE,
                    can_restore=False,
                    local_path=self.local.url_for(filename),
                    remote_url=probe.url,
                    remote_id=probe.public_id,
                    size=info.size,
                    created_at=info.created_at,
                )
            readable = await self.local.is_readable(filename)
            logger.debug("Local file check: %s readable=%s", filename, readable)
            return ImageRecord(
                id=filename,
                filename=filename,
                original_name=filename,
                status=ImageStatus.MISSING,
                can_restore=readable,
                local_path=self.local.url_for(filename),
                size=info.size,
                created_at=info.created_at,
            )
        except Exception:
            # fail open: report the file as restorable rather than hiding it
            logger.exception("Error processing file %s", filename)
            return ImageRecord(
                id=filename,
                filename=filename,
                original_name=filename,
                status=ImageStatus.MISSING,
                can_restore=True,
                local_path=self.local.url_for(filename),
            )
