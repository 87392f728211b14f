from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from imagesync.application.use_cases.delete_image import DeleteImageUseCase
from imagesync.application.use_cases.list_images import ListImagesUseCase
from imagesync.application.use_cases.restore_image import RestoreImageUseCase
from imagesync.application.use_cases.upload_image import UploadImageUseCase
from imagesync.config import Settings
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore
from imagesync.infrastructure.storage.local_storage import LocalImageStorage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_local_storage(settings: SettingsDep) -> LocalImageStorage:
    return LocalImageStorage(settings.upload_dir)


def get_remote_store(settings: SettingsDep) -> CloudinaryStore:
    return CloudinaryStore(settings)


LocalDep = Annotated[LocalImageStorage, Depends(get_local_storage)]
RemoteDep = Annotated[CloudinaryStore, Depends(get_remote_store)]


def get_upload_use_case(settings: SettingsDep, local: LocalDep, remote: RemoteDep) -> UploadImageUseCase:
    return UploadImageUseCase(
        local=local,
        remote=remote,
        max_upload_bytes=settings.max_upload_bytes,
        max_attempts=settings.upload_max_attempts,
        backoff_seconds=settings.retry_backoff_seconds,
    )


def get_list_use_case(settings: SettingsDep, local: LocalDep, remote: RemoteDep) -> ListImagesUseCase:
    return ListImagesUseCase(
        local=local,
        remote=remote,
        image_extensions=settings.image_extensions,
        concurrency=settings.list_concurrency,
    )


def get_restore_use_case(local: LocalDep, remote: RemoteDep) -> RestoreImageUseCase:
    return RestoreImageUseCase(local=local, remote=remote)


def get_delete_use_case(local: LocalDep, remote: RemoteDep) -> DeleteImageUseCase:
    return DeleteImageUseCase(local=local, remote=remote)
