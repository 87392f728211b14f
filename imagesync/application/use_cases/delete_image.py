from __future__ import annotations

import logging
from dataclasses import dataclass

from imagesync.application.use_cases.list_images import resolve_remote
from imagesync.domain.errors import NotFoundError
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore
from imagesync.infrastructure.storage.local_storage import LocalImageStorage

logger = logging.getLogger(__name__)


@dataclass
class DeleteResult:
    filename: str
    remote_id: str | None
    local_deleted: bool
    remote_deleted: bool


@dataclass
class DeleteImageUseCase:
    local: LocalImageStorage
    remote: CloudinaryStore

    async def execute(self, filename: str) -> DeleteResult:
        """
        Remove an image from both stores.

        The remote copy goes first: if the remote store rejects the delete
        the RemoteDeleteFault propagates and the local copy is kept, so the
        file can still be listed and retried.

        Raises:
            NotFoundError: If neither store has the file
            RemoteDeleteFault: If the remote store rejects the deletion
        """
        try:
            self.local.path_for(filename)
        except ValueError as exc:
            raise NotFoundError(str(exc), error="Image not found") from exc
        local_exists = await self.local.exists(filename)
        probe = await resolve_remote(self.remote, filename)
        if not local_exists and not probe.exists:
            raise NotFoundError(f"{filename} not found locally or remotely", error="Image not found")

        remote_deleted = False
        if probe.exists and probe.public_id:
            remote_deleted = await self.remote.delete(probe.public_id)

        local_deleted = await self.local.delete(filename) if local_exists else False
        logger.info(
            "Deleted %s (local=%s, remote=%s)", filename, local_deleted, remote_deleted
        )
        return DeleteResult(
            filename=filename,
            remote_id=probe.public_id,
            local_deleted=local_deleted,
            remote_deleted=remote_deleted,
        )
