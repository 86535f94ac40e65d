"""API route modules: health probes and background removal."""

from .health import router as health_router
from .process import router as process_router

__all__ = ["health_router", "process_router"]
