from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Query, UploadFile

from imagesync.application.dtos.common_dto import ErrorResponse
from imagesync.application.dtos.image_dto import (
    DeletedImage,
    DeleteImageResponse,
    ImageRecordResponse,
    RemoteStatusResponse,
    RestoredImage,
    RestoreImageResponse,
)
from imagesync.application.use_cases.delete_image import DeleteImageUseCase
from imagesync.application.use_cases.list_images import ListImagesUseCase
from imagesync.application.use_cases.restore_image import RestoreImageUseCase
from imagesync.application.use_cases.upload_image import UploadImageUseCase
from imagesync.domain.errors import RemoteUploadFault, ValidationError
from imagesync.infrastructure.api.dependencies import (
    get_delete_use_case,
    get_list_use_case,
    get_remote_store,
    get_restore_use_case,
    get_upload_use_case,
)
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Images"],
    responses={500: {"model": ErrorResponse, "description": "Local storage or remote store failure"}},
)


@router.post(
    "/upload",
    response_model=ImageRecordResponse,
    summary="Upload Image",
    description="""
    Store an image locally and upload it to Cloudinary.

    **Form field**: `image`
    **Maximum file size**: 5 MiB by default (`MAX_UPLOAD_BYTES`)

    The remote upload is retried with a linear backoff. If every attempt
    fails the local copy is removed and a 500 is returned.
    """,
    responses={400: {"model": ErrorResponse, "description": "No file, not an image, or too large"}},
)
async def upload_image(
    image: UploadFile | None = File(None, description="Image file to upload"),
    uc: UploadImageUseCase = Depends(get_upload_use_case),
):
    """Upload an image to both stores."""
    if image is None:
        logger.error("No file uploaded")
        raise ValidationError("Form field 'image' is required", error="No file uploaded")
    # read one byte past the limit so oversized files are detected without buffering them whole
    data = await image.read(uc.max_upload_bytes + 1)
    logger.info(
        "Received upload: name=%s type=%s bytes=%d", image.filename, image.content_type, len(data)
    )
    record = await uc.execute(data, image.filename or "upload", image.content_type)
    return ImageRecordResponse.from_record(record)


@router.get(
    "/local-images",
    response_model=list[ImageRecordResponse],
    summary="List Local Images",
    description="""
    Scan the upload directory and report, for every image, whether it is
    present in Cloudinary (`available`) or not (`missing`), and whether it
    can be restored. Status is recomputed on every call.
    """,
)
async def list_local_images(uc: ListImagesUseCase = Depends(get_list_use_case)):
    """Reconcile local images with the remote store."""
    records = await uc.execute()
    return [ImageRecordResponse.from_record(r) for r in records]


@router.post(
    "/restore/{filename}",
    response_model=RestoreImageResponse,
    summary="Restore Image",
    description="Re-upload a locally cached image that is missing from Cloudinary (single attempt).",
    responses={404: {"model": ErrorResponse, "description": "Local image file not found"}},
)
async def restore_image(filename: str, uc: RestoreImageUseCase = Depends(get_restore_use_case)):
    """Push a local image back to the remote store."""
    logger.info("Restore request received for filename: %s", filename)
    try:
        record = await uc.execute(filename)
    except RemoteUploadFault as exc:
        raise RemoteUploadFault(str(exc), error="Failed to restore image") from exc
    return RestoreImageResponse(
        data=RestoredImage(
            filename=record.filename,
            cloudinary_url=record.remote_url,
            cloudinary_public_id=record.remote_id,
            status=record.status,
        )
    )


@router.delete(
    "/images/{filename}",
    response_model=DeleteImageResponse,
    summary="Delete Image",
    description="""
    Delete an image from Cloudinary (if present) and from the upload directory.

    If Cloudinary rejects the delete, the local file is kept and a 500 is returned.
    """,
    responses={404: {"model": ErrorResponse, "description": "Image not found in either store"}},
)
async def delete_image(filename: str, uc: DeleteImageUseCase = Depends(get_delete_use_case)):
    """Delete an image from both stores."""
    result = await uc.execute(filename)
    return DeleteImageResponse(
        data=DeletedImage(
            filename=result.filename,
            cloudinary_public_id=result.remote_id,
            local_deleted=result.local_deleted,
            remote_deleted=result.remote_deleted,
        )
    )


@router.get(
    "/remote-status",
    response_model=RemoteStatusResponse,
    summary="Check Delivery URL",
    description="Check whether a Cloudinary delivery URL still resolves.",
)
async def remote_status(
    url: str = Query(..., description="Cloudinary delivery URL"),
    remote: CloudinaryStore = Depends(get_remote_store),
):
    """Verify a delivery URL against the remote store."""
    return RemoteStatusResponse(url=url, exists=await remote.verify_url(url))
