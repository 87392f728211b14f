"""Application configuration loaded once from the environment."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from imagesync.domain.errors import ConfigurationError

REQUIRED_ENV_VARS = ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")


class Settings(BaseSettings):
    """Immutable service settings.

    Field names map case-insensitively to environment variables, so
    ``cloudinary_cloud_name`` is read from ``CLOUDINARY_CLOUD_NAME``. List
    values are given as JSON, e.g. ``PROBE_EXTENSIONS='["", ".jpg"]'``.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    # Remote store credentials
    cloudinary_cloud_name: str = Field(..., min_length=1)
    cloudinary_api_key: str = Field(..., min_length=1)
    cloudinary_api_secret: str = Field(..., min_length=1)
    cloudinary_delivery_url: str = "https://res.cloudinary.com"

    # Server
    env: str = "production"
    host: str = "0.0.0.0"
    port: int = 3001
    frontend_url: str | None = None
    allowed_origins: tuple[str, ...] = (
        "https://cloudapp-frontend-kohl.vercel.app",
        "http://localhost:5173",
    )
    log_level: str = "INFO"

    # Local storage
    upload_dir: Path = Path("uploads")
    max_upload_bytes: int = Field(5 * 1024 * 1024, gt=0)
    image_extensions: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".gif", ".webp")

    # Remote calls
    upload_max_attempts: int = Field(3, ge=1)
    retry_backoff_seconds: float = Field(1.0, ge=0)
    probe_extensions: tuple[str, ...] = ("", ".jpg", ".png")
    request_timeout_seconds: float = Field(10.0, gt=0)
    list_concurrency: int = Field(8, ge=1)

    @property
    def is_development(self) -> bool:
        return self.env.lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.rstrip("/") for o in self.allowed_origins]
        if self.frontend_url:
            origins.append(self.frontend_url.rstrip("/"))
        # keep order, drop duplicates
        return list(dict.fromkeys(origins))


def load_settings(**overrides) -> Settings:
    """Build settings, turning missing credentials into a ConfigurationError."""
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        missing = [
            str(err["loc"][0]).upper()
            for err in exc.errors()
            if err["loc"] and str(err["loc"][0]).upper() in REQUIRED_ENV_VARS
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variable: {', '.join(missing)}"
            ) from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
