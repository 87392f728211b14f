from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from imagesync import __version__
from imagesync.application.dtos.common_dto import HealthResponse, RootResponse
from imagesync.config import Settings, get_settings
from imagesync.infrastructure.api.middlewares import add_default_middlewares, add_exception_handlers
from imagesync.infrastructure.api.routes.image_routes import router as image_router
from imagesync.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="ImageSync Backend",
        version=__version__,
        description="""
        ## ImageSync Backend API

        Stores uploaded images on local disk and in Cloudinary, and reconciles
        the two stores on demand.

        ### Features
        - **Upload**: local write, then Cloudinary upload with retry and rollback
        - **Listing**: every local image tagged `available` or `missing`
        - **Restore**: re-push a local image that is missing from Cloudinary
        - **Static files**: local copies are served under `/uploads`

        ### Error Responses
        Errors are returned as `{"error": ..., "details": ...}`:
        - **400 Bad Request**: No file, not an image, or file too large
        - **404 Not Found**: Local image file does not exist
        - **500 Internal Server Error**: Local storage or Cloudinary failure
        """,
    )
    app.state.settings = settings

    add_default_middlewares(app, settings)
    add_exception_handlers(app, settings)

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    @app.get(
        "/",
        response_model=RootResponse,
        summary="API Root",
        description="Get basic information about the ImageSync API",
    )
    def root():
        """Get API root information."""
        return RootResponse(status="ok", service="imagesync-backend", version=app.version)

    @app.get(
        "/health",
        response_model=HealthResponse,
        summary="Health Check",
        description="Check if the API service is running",
    )
    def health():
        """Check API health status."""
        return HealthResponse(status="ok", timestamp=datetime.now(UTC))

    app.include_router(image_router)
    logger.info("Upload directory: %s", settings.upload_dir.resolve())
    return app


app = create_app()


def main() -> None:
    """Entry point for running the service directly."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("imagesync.main:app", host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
