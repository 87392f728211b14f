"""Error taxonomy shared by the storage adapters, use cases and API layer."""
from __future__ import annotations


class ImageSyncError(Exception):
    """Base class for failures that are reported to API callers.

    ``error`` is the short, user-facing message; ``str(exc)`` carries the
    details.
    """

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: str = "", *, error: str | None = None) -> None:
        super().__init__(message or self.error)
        if error is not None:
            self.error = error


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class ValidationError(ImageSyncError):
    status_code = 400
    error = "Invalid upload"


class NotFoundError(ImageSyncError):
    status_code = 404
    error = "Local image file not found"


class StorageFault(ImageSyncError):
    """Local disk write/read failure."""

    status_code = 500
    error = "Failed to save file locally"


class RemoteUploadFault(ImageSyncError):
    status_code = 500
    error = "Failed to upload image"


class RemoteProbeFault(ImageSyncError):
    """Existence check failure. Never leaves the remote store client."""

    status_code = 500
    error = "Remote existence check failed"


class RemoteDeleteFault(ImageSyncError):
    status_code = 500
    error = "Failed to delete image"
