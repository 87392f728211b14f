from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from imagesync.domain.entities.image import ImageRecord, ImageStatus


class ImageRecordResponse(BaseModel):
    """An image as seen by both stores at the time of the request."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Local storage key", examples=["1700000000000-cat.jpg"])
    filename: str = Field(..., description="Name of the file in the upload directory")
    original_name: str = Field(..., alias="originalName", description="Filename as supplied by the client")
    path: str | None = Field(None, description="URL path serving the local copy", examples=["/uploads/1700000000000-cat.jpg"])
    cloudinary_url: str | None = Field(None, alias="cloudinaryUrl", description="Delivery URL when present remotely")
    cloudinary_public_id: str | None = Field(None, alias="cloudinaryPublicId", description="Remote identifier")
    size: int | None = Field(None, description="Size of the local file in bytes", ge=0)
    created_at: datetime | None = Field(None, alias="createdAt", description="Local file creation time")
    status: ImageStatus = Field(..., description="available or missing")
    can_restore: bool = Field(False, alias="canRestore", description="True if missing remotely and readable locally")

    @classmethod
    def from_record(cls, record: ImageRecord) -> "ImageRecordResponse":
        return cls(
            id=record.id,
            filename=record.filename,
            original_name=record.original_name,
            path=record.local_path,
            cloudinary_url=record.remote_url,
            cloudinary_public_id=record.remote_id,
            size=record.size,
            created_at=record.created_at,
            status=record.status,
            can_restore=record.can_restore,
        )


class RestoredImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    cloudinary_url: str | None = Field(None, alias="cloudinaryUrl")
    cloudinary_public_id: str | None = Field(None, alias="cloudinaryPublicId")
    status: ImageStatus


class RestoreImageResponse(BaseModel):
    """Response model for a successful restore."""
    message: str = Field("Image restored to Cloudinary")
    data: RestoredImage


class DeletedImage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    filename: str
    cloudinary_public_id: str | None = Field(None, alias="cloudinaryPublicId")
    local_deleted: bool = Field(..., alias="localDeleted")
    remote_deleted: bool = Field(..., alias="remoteDeleted")


class DeleteImageResponse(BaseModel):
    """Response model for image deletion."""
    message: str = Field("Image deleted")
    data: DeletedImage


class RemoteStatusResponse(BaseModel):
    url: str = Field(..., description="Delivery URL that was checked")
    exists: bool = Field(..., description="Whether the URL still resolves in the remote store")
