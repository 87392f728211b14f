from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import cloudinary.api
import cloudinary.uploader
import httpx
from starlette.concurrency import run_in_threadpool

from imagesync.config import Settings
from imagesync.domain.entities.image import ProbeResult, RemoteObject
from imagesync.domain.errors import RemoteDeleteFault, RemoteProbeFault, RemoteUploadFault
from imagesync.domain.services.identifier_resolver import default_public_id, public_id_from_url

logger = logging.getLogger(__name__)

_PROBE_HEADERS = {"User-Agent": "Mozilla/5.0", "Accept": "image/*"}


class CloudinaryStore:
    """Storage adapter for Cloudinary.

    Credentials are passed on every SDK call instead of through the global
    ``cloudinary.config`` so several stores can coexist (tests, multiple
    accounts). SDK calls block, so they run in the threadpool; delivery URL
    probes go through ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.cloud_name = settings.cloudinary_cloud_name
        self.delivery_url = settings.cloudinary_delivery_url.rstrip("/")
        self.probe_extensions = settings.probe_extensions
        self.timeout = settings.request_timeout_seconds
        self._transport = transport
        self._options: dict[str, Any] = {
            "cloud_name": settings.cloudinary_cloud_name,
            "api_key": settings.cloudinary_api_key,
            "api_secret": settings.cloudinary_api_secret,
            "timeout": settings.request_timeout_seconds,
        }

    def delivery_urls(self, public_id: str) -> list[str]:
        base = f"{self.delivery_url}/{self.cloud_name}/image/upload/{public_id}"
        return [f"{base}{ext}" for ext in self.probe_extensions]

    async def upload(self, local_file_path: Path | str, original_name: str) -> RemoteObject:
        public_id = default_public_id(original_name)
        logger.info("Uploading to Cloudinary: %s as %s", local_file_path, public_id)
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                str(local_file_path),
                resource_type="auto",
                public_id=public_id,
                **self._options,
            )
            return RemoteObject(url=result["secure_url"], public_id=result["public_id"])
        except Exception as exc:
            raise RemoteUploadFault(f"Cloudinary upload failed: {exc}") from exc

    async def _lookup(self, public_id: str) -> ProbeResult:
        try:
            resource = await run_in_threadpool(cloudinary.api.resource, public_id, **self._options)
        except Exception as exc:
            raise RemoteProbeFault(f"Resource lookup failed for {public_id}: {exc}") from exc
        return ProbeResult(exists=True, url=resource["secure_url"], public_id=resource["public_id"])

    async def _url_responds(self, client: httpx.AsyncClient, url: str, method: str = "HEAD") -> bool:
        try:
            response = await client.request(method, url, headers=_PROBE_HEADERS)
        except httpx.HTTPError as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            return False
        return response.is_success

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport, follow_redirects=True)

    async def probe_exists(self, public_id: str) -> ProbeResult:
        """Check whether ``public_id`` exists remotely.

        The Admin API lookup is authoritative but keyed by the exact id; when
        it fails the public delivery URLs are probed with each configured
        extension, in order. Never raises.
        """
        try:
            result = await self._lookup(public_id)
            logger.debug("Resource exists (via API): %s", result.public_id)
            return result
        except RemoteProbeFault as exc:
            logger.info("API check failed, trying URL check: %s", exc)

        try:
            async with self._http_client() as client:
                for url in self.delivery_urls(public_id):
                    if await self._url_responds(client, url):
                        logger.info("Resource exists (via URL): %s", url)
                        return ProbeResult(exists=True, url=url, public_id=public_id)
        except Exception:
            logger.exception("Error probing delivery URLs for %s", public_id)
            return ProbeResult.not_found()

        logger.info("Resource not found: %s", public_id)
        return ProbeResult.not_found()

    async def delete(self, public_id: str) -> bool:
        logger.info("Deleting Cloudinary resource: %s", public_id)
        try:
            result = await run_in_threadpool(cloudinary.uploader.destroy, public_id, **self._options)
        except Exception as exc:
            raise RemoteDeleteFault(f"Cloudinary delete failed for {public_id}: {exc}") from exc
        outcome = (result or {}).get("result")
        if outcome in ("ok", "not found"):
            return True
        raise RemoteDeleteFault(f"Cloudinary rejected delete of {public_id}: {outcome}")

    async def verify_url(self, url: str) -> bool:
        """Check that a previously returned delivery URL still resolves."""
        if not url or "cloudinary.com" not in url:
            logger.info("Invalid Cloudinary URL: %s", url)
            return False
        public_id = public_id_from_url(url)
        if not public_id:
            logger.info("Could not extract public_id from URL: %s", url)
            return False
        try:
            await self._lookup(public_id)
            return True
        except RemoteProbeFault as exc:
            logger.info("Cloudinary API error: %s", exc)

        try:
            async with self._http_client() as client:
                # some CDNs refuse HEAD, so fall back to GET
                for method in ("HEAD", "GET"):
                    if await self._url_responds(client, url, method):
                        return True
        except Exception:
            logger.exception("Error checking Cloudinary image: %s", url)
        return False
