"""Common DTOs for API responses and error handling."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str = Field(..., description="Short description of what went wrong", examples=["Failed to upload image"])
    details: Optional[str] = Field(None, description="Underlying cause")
    stack: Optional[str] = Field(None, description="Traceback, development mode only")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Health status", examples=["ok"])
    timestamp: datetime = Field(..., description="Server time of the check")


class RootResponse(BaseModel):
    """Root endpoint response model."""
    status: str = Field(..., description="API status", examples=["ok"])
    service: str = Field(..., description="Service name", examples=["imagesync-backend"])
    version: str = Field(..., description="API version", examples=["0.1.0"])
