from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from imagesync.domain.errors import StorageFault

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


@dataclass
class LocalFileInfo:
    filename: str
    size: int
    created_at: datetime


def sanitize_filename(original_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", original_name)


class LocalImageStorage:
    """Upload directory on local disk, served statically under ``url_prefix``.

    All blocking filesystem calls are pushed to the threadpool.
    """

    def __init__(self, root: Path, url_prefix: str = "/uploads") -> None:
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def ensure_root(self) -> None:
        if not self.root.exists():
            logger.info("Creating uploads directory: %s", self.root)
        self.root.mkdir(parents=True, exist_ok=True)

    def build_filename(self, original_name: str, now_ms: int | None = None) -> str:
        stamp = now_ms if now_ms is not None else int(time.time() * 1000)
        return f"{stamp}-{sanitize_filename(original_name)}"

    def path_for(self, filename: str) -> Path:
        """Resolve ``filename`` inside the root; anything else is rejected."""
        if not filename or filename in (".", "..") or "/" in filename or "\\" in filename:
            raise ValueError(f"Invalid filename: {filename!r}")
        return self.root / filename

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"

    async def save(self, filename: str, data: bytes) -> Path:
        path = self.path_for(filename)

        def _write() -> None:
            self.root.mkdir(parents=True, exist_ok=True)
            try:
                with path.open("wb") as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
            except OSError:
                # no partial file may survive a failed write
                try:
                    path.unlink(missing_ok=True)
                except OSError:
                    logger.exception("Failed to remove partial file: %s", path)
                raise

        try:
            await run_in_threadpool(_write)
        except OSError as exc:
            raise StorageFault(f"Failed to write {filename}: {exc}") from exc
        return path

    async def exists(self, filename: str) -> bool:
        try:
            path = self.path_for(filename)
        except ValueError:
            return False
        return await run_in_threadpool(path.is_file)

    async def is_readable(self, filename: str) -> bool:
        try:
            path = self.path_for(filename)
        except ValueError:
            return False
        return await run_in_threadpool(lambda: path.is_file() and os.access(path, os.R_OK))

    async def stat(self, filename: str) -> LocalFileInfo:
        st = await run_in_threadpool(self.path_for(filename).stat)
        # st_birthtime only exists on some platforms
        born = getattr(st, "st_birthtime", None) or st.st_ctime
        return LocalFileInfo(
            filename=filename,
            size=st.st_size,
            created_at=datetime.fromtimestamp(born, tz=UTC),
        )

    async def delete(self, filename: str) -> bool:
        """Remove a file; returns False if it was already gone."""
        path = self.path_for(filename)

        def _unlink() -> bool:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            return True

        return await run_in_threadpool(_unlink)

    async def scan(self) -> list[str]:
        """Names of regular files in the root, sorted (oldest timestamp first)."""

        def _list() -> list[str]:
            self.ensure_root()
            return sorted(entry.name for entry in os.scandir(self.root) if entry.is_file())

        try:
            return await run_in_threadpool(_list)
        except OSError as exc:
            raise StorageFault(f"Failed to read {self.root}: {exc}", error="Failed to list local images") from exc
