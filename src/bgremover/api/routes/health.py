"""Health and status endpoints."""

from fastapi import APIRouter, Depends

from bgremover.api.schemas.responses import HealthResponse, ReadyResponse
from bgremover.api.dependencies import get_processor
from bgremover.processing.processor import BackgroundRemover

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Basic health check for liveness probe.

    Returns a simple status indicating the service is running.
    """
    return HealthResponse(status="healthy")


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(processor: BackgroundRemover = Depends(get_processor)):
    """
    Readiness check for Kubernetes readiness probe.

    Ready once the segmentation model has been loaded.
    """
    models_loaded = processor.is_model_loaded

    return ReadyResponse(
        ready=models_loaded,
        models_loaded=models_loaded
    )
