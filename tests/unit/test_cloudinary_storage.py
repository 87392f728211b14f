"""
Tests for the Cloudinary adapter. SDK calls are monkeypatched and delivery
URL probes go through httpx.MockTransport, so nothing touches the network.
"""
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import httpx
import pytest

from imagesync.domain.errors import RemoteDeleteFault, RemoteUploadFault
from imagesync.infrastructure.storage.cloudinary_storage import CloudinaryStore

BASE = "https://res.cloudinary.com/demo/image/upload"


def _lookup_fails(public_id, **options):
    raise cloudinary.exceptions.NotFound(f"Resource not found - {public_id}")


def _transport(seen, ok_urls=(), ok_methods=("HEAD",)):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, str(request.url)))
        if str(request.url) in ok_urls and request.method in ok_methods:
            return httpx.Response(200)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_probe_uses_metadata_lookup_first(settings, monkeypatch):
    captured = {}

    def fake_resource(public_id, **options):
        captured.update(options, public_id=public_id)
        return {"public_id": public_id, "secure_url": f"{BASE}/v1/{public_id}.png"}

    monkeypatch.setattr(cloudinary.api, "resource", fake_resource)
    seen = []
    store = CloudinaryStore(settings, transport=_transport(seen))

    result = await store.probe_exists("cat")

    assert result.exists
    assert result.url == f"{BASE}/v1/cat.png"
    assert result.public_id == "cat"
    assert captured["cloud_name"] == "demo"
    assert captured["timeout"] == settings.request_timeout_seconds
    assert seen == []


@pytest.mark.asyncio
async def test_probe_falls_back_to_url_ladder_in_order(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.api, "resource", _lookup_fails)
    seen = []
    store = CloudinaryStore(settings, transport=_transport(seen, ok_urls={f"{BASE}/cat.png"}))

    result = await store.probe_exists("cat")

    assert result.exists
    assert result.url == f"{BASE}/cat.png"
    assert result.public_id == "cat"
    assert seen == [
        ("HEAD", f"{BASE}/cat"),
        ("HEAD", f"{BASE}/cat.jpg"),
        ("HEAD", f"{BASE}/cat.png"),
    ]


@pytest.mark.asyncio
async def test_probe_stops_at_first_successful_url(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.api, "resource", _lookup_fails)
    seen = []
    ok = {f"{BASE}/cat.jpg", f"{BASE}/cat.png"}
    store = CloudinaryStore(settings, transport=_transport(seen, ok_urls=ok))

    result = await store.probe_exists("cat")

    assert result.url == f"{BASE}/cat.jpg"
    assert len(seen) == 2


@pytest.mark.asyncio
async def test_probe_reports_missing_when_everything_fails(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.api, "resource", _lookup_fails)
    store = CloudinaryStore(settings, transport=_transport([]))

    result = await store.probe_exists("cat")

    assert not result.exists
    assert result.url is None and result.public_id is None


@pytest.mark.asyncio
async def test_probe_network_errors_degrade_to_missing(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.api, "resource", _lookup_fails)

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = CloudinaryStore(settings, transport=httpx.MockTransport(handler))

    result = await store.probe_exists("cat")

    assert not result.exists


@pytest.mark.asyncio
async def test_upload_strips_extension_for_public_id(settings, monkeypatch, tmp_path):
    captured = {}

    def fake_upload(file, **options):
        captured.update(options, file=file)
        return {"public_id": options["public_id"], "secure_url": f"{BASE}/v1/{options['public_id']}.jpg"}

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    store = CloudinaryStore(settings)
    local = tmp_path / "17-cat.jpg"

    result = await store.upload(local, "cat.jpg")

    assert result.public_id == "cat"
    assert result.url == f"{BASE}/v1/cat.jpg"
    assert captured["file"] == str(local)
    assert captured["resource_type"] == "auto"
    assert captured["api_key"] == "test-key"


@pytest.mark.asyncio
async def test_upload_failure_raises_remote_upload_fault(settings, monkeypatch):
    def fake_upload(file, **options):
        raise cloudinary.exceptions.Error("quota exceeded")

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)

    with pytest.raises(RemoteUploadFault, match="quota exceeded"):
        await CloudinaryStore(settings).upload("/tmp/x.png", "x.png")


@pytest.mark.asyncio
@pytest.mark.parametrize("outcome", ["ok", "not found"])
async def test_delete_is_idempotent(settings, monkeypatch, outcome):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **o: {"result": outcome})
    assert await CloudinaryStore(settings).delete("cat") is True


@pytest.mark.asyncio
async def test_delete_rejection_raises(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, "destroy", lambda public_id, **o: {"result": "error"})
    with pytest.raises(RemoteDeleteFault):
        await CloudinaryStore(settings).delete("cat")


@pytest.mark.asyncio
async def test_delete_transport_error_raises(settings, monkeypatch):
    def boom(public_id, **options):
        raise cloudinary.exceptions.Error("unauthorized")

    monkeypatch.setattr(cloudinary.uploader, "destroy", boom)
    with pytest.raises(RemoteDeleteFault, match="unauthorized"):
        await CloudinaryStore(settings).delete("cat")


@pytest.mark.asyncio
async def test_verify_url_rejects_foreign_urls(settings):
    assert await CloudinaryStore(settings).verify_url("https://example.com/cat.png") is False
    assert await CloudinaryStore(settings).verify_url("") is False


@pytest.mark.asyncio
async def test_verify_url_falls_back_to_get(settings, monkeypatch):
    monkeypatch.setattr(cloudinary.api, "resource", _lookup_fails)
    seen = []
    url = f"{BASE}/v1/cat.png"
    store = CloudinaryStore(settings, transport=_transport(seen, ok_urls={url}, ok_methods=("GET",)))

    assert await store.verify_url(url) is True
    assert [m for m, _ in seen] == ["HEAD", "GET"]


def test_delivery_urls_follow_configured_extensions(settings):
    store = CloudinaryStore(settings)
    assert store.delivery_urls("cat") == [f"{BASE}/cat", f"{BASE}/cat.jpg", f"{BASE}/cat.png"]
