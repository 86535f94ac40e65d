"""Response schemas for the API."""

from pydantic import BaseModel
from typing import Optional


class HealthResponse(BaseModel):
    """Simple health check response."""
    status: str = "healthy"


class ReadyResponse(BaseModel):
    """Readiness check response."""
    ready: bool
    models_loaded: bool


class RemoveBackgroundResponse(BaseModel):
    """Background removal response."""
    success: bool
    uri: Optional[str] = None
    error: Optional[str] = None
    error_message: Optional[str] = None
    stage: Optional[str] = None
