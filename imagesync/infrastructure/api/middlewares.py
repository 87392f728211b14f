from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from imagesync.config import Settings
from imagesync.domain.errors import ImageSyncError

logger = logging.getLogger(__name__)


class AllowListCORSMiddleware(CORSMiddleware):
    """CORS middleware that ignores a trailing slash on the request origin."""

    def is_allowed_origin(self, origin: str) -> bool:
        return super().is_allowed_origin(origin.rstrip("/"))


def add_default_middlewares(app: FastAPI, settings: Settings) -> None:
    # Only the configured origins are allowed; everything else gets no CORS
    # headers and a 400 on preflight.
    app.add_middleware(
        AllowListCORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


def error_payload(exc: Exception, error: str, settings: Settings) -> dict:
    payload = {"error": error, "details": str(exc)}
    if settings.is_development:
        payload["stack"] = "".join(traceback.format_exception(exc))
    return payload


def add_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ImageSyncError)
    async def _handle_imagesync_error(request: Request, exc: ImageSyncError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc, exc.error, settings))

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_payload(exc, "Internal error", settings))
