"""Image processing endpoints."""

import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from bgremover.api.schemas.requests import RemoveBackgroundRequest
from bgremover.api.schemas.responses import RemoveBackgroundResponse
from bgremover.api.dependencies import get_processor
from bgremover.core.exceptions import (
    BackgroundRemoverError,
    DecodeError,
    FetchError,
)
from bgremover.processing.processor import BackgroundRemover

router = APIRouter(prefix="/api/v1", tags=["processing"])


def _status_for(error: BackgroundRemoverError) -> int:
    if isinstance(error, FetchError):
        return 502
    if isinstance(error, DecodeError):
        return 422
    return 500


@router.post("/remove-background", response_model=RemoveBackgroundResponse)
async def remove_background(
    request: RemoveBackgroundRequest,
    processor: BackgroundRemover = Depends(get_processor),
):
    """
    Remove the background of an image.

    **Parameters:**
    - **image_uri**: Local path, file:// URI or http(s) URL

    **Returns:**
    - file:// URI of a PNG whose background pixels are fully transparent
    """
    start_time = time.time()

    try:
        uri = await processor.remove_background(request.image_uri)
    except BackgroundRemoverError as e:
        body = RemoveBackgroundResponse(
            success=False,
            error=e.code,
            error_message=str(e),
            stage=e.stage,
        )
        return JSONResponse(status_code=_status_for(e), content=body.model_dump())

    processing_time = int((time.time() - start_time) * 1000)
    return JSONResponse(
        content=RemoveBackgroundResponse(success=True, uri=uri).model_dump(),
        headers={"X-Processing-Time-Ms": str(processing_time)},
    )
