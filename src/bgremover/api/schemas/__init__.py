"""Pydantic schemas for API requests and responses."""

from .requests import RemoveBackgroundRequest
from .responses import (
    HealthResponse,
    ReadyResponse,
    RemoveBackgroundResponse,
)

__all__ = [
    "RemoveBackgroundRequest",
    "HealthResponse",
    "ReadyResponse",
    "RemoveBackgroundResponse",
]
