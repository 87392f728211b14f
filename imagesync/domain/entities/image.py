from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ImageStatus(str, Enum):
    AVAILABLE = "available"  # confirmed in the remote store
    MISSING = "missing"  # absent remotely, present locally


@dataclass(frozen=True)
class ImageRecord:
    id: str
    filename: str  # {epoch_millis}-{sanitized_name}
    original_name: str
    status: ImageStatus
    can_restore: bool = False
    local_path: str | None = None  # /uploads/{filename}
    remote_url: str | None = None
    remote_id: str | None = None
    size: int | None = None  # bytes
    created_at: datetime | None = None


@dataclass(frozen=True)
class RemoteObject:
    """Result of a successful upload to the remote store."""

    url: str
    public_id: str


@dataclass(frozen=True)
class ProbeResult:
    exists: bool
    url: str | None = None
    public_id: str | None = None

    @classmethod
    def not_found(cls) -> "ProbeResult":
        return cls(exists=False)
