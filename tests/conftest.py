import io
import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'imagesync' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "demo")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="imagesync-"))

from imagesync.config import load_settings  # noqa: E402
from imagesync.domain.entities.image import ProbeResult, RemoteObject  # noqa: E402
from imagesync.domain.errors import RemoteDeleteFault, RemoteUploadFault  # noqa: E402
from imagesync.domain.services.identifier_resolver import default_public_id  # noqa: E402
from imagesync.infrastructure.storage.local_storage import LocalImageStorage  # noqa: E402


def make_png_bytes(w=4, h=4, color=(128, 64, 32)) -> bytes:
    img = Image.new("RGB", (w, h), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakeRemoteStore:
    """In-memory stand-in for CloudinaryStore.

    ``objects`` maps public ids to delivery URLs. ``upload_failures`` makes
    the next N uploads raise RemoteUploadFault.
    """

    def __init__(self) -> None:
        self.objects: dict[str, str] = {}
        self.upload_failures = 0
        self.delete_error: str | None = None
        self.probe_error: Exception | None = None
        self.verified_urls: set[str] = set()
        self.upload_calls: list[tuple[str, str]] = []
        self.probe_calls: list[str] = []
        self.delete_calls: list[str] = []

    def url_for(self, public_id: str) -> str:
        return f"https://res.cloudinary.com/demo/image/upload/{public_id}.png"

    async def upload(self, local_file_path, original_name: str) -> RemoteObject:
        self.upload_calls.append((str(local_file_path), original_name))
        if self.upload_failures > 0:
            self.upload_failures -= 1
            raise RemoteUploadFault("simulated network failure")
        public_id = default_public_id(original_name)
        self.objects[public_id] = self.url_for(public_id)
        return RemoteObject(url=self.objects[public_id], public_id=public_id)

    async def probe_exists(self, public_id: str) -> ProbeResult:
        self.probe_calls.append(public_id)
        if self.probe_error is not None:
            raise self.probe_error
        if public_id in self.objects:
            return ProbeResult(exists=True, url=self.objects[public_id], public_id=public_id)
        return ProbeResult.not_found()

    async def delete(self, public_id: str) -> bool:
        self.delete_calls.append(public_id)
        if self.delete_error:
            raise RemoteDeleteFault(self.delete_error)
        self.objects.pop(public_id, None)
        return True

    async def verify_url(self, url: str) -> bool:
        return url in self.verified_urls


@pytest.fixture()
def settings(tmp_path):
    return load_settings(
        cloudinary_cloud_name="demo",
        cloudinary_api_key="test-key",
        cloudinary_api_secret="test-secret",
        upload_dir=tmp_path / "uploads",
        retry_backoff_seconds=0,
        _env_file=None,
    )


@pytest.fixture()
def local_storage(settings) -> LocalImageStorage:
    storage = LocalImageStorage(settings.upload_dir)
    storage.ensure_root()
    return storage


@pytest.fixture()
def fake_remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png_bytes()


@pytest.fixture()
def make_app(fake_remote):
    # lazy import after env configured
    from imagesync.infrastructure.api.dependencies import get_remote_store
    from imagesync.main import create_app

    def _make(settings):
        app = create_app(settings)
        app.dependency_overrides[get_remote_store] = lambda: fake_remote
        return app

    return _make


@pytest.fixture()
def client(make_app, settings) -> TestClient:
    return TestClient(make_app(settings))
