"""Punch the background out of an image using a confidence mask."""

from concurrent.futures import ThreadPoolExecutor

import numpy as np

from bgremover.core.exceptions import DimensionMismatchError
from .models import ConfidenceBuffer, PixelBuffer

# Strictly greater-than: a confidence of exactly 0.5 is background.
FOREGROUND_THRESHOLD = 0.5


def _composite_rows(src: np.ndarray, mask: np.ndarray, out: np.ndarray) -> None:
    keep = mask > FOREGROUND_THRESHOLD
    out[keep] = src[keep]


def composite(pixels: PixelBuffer, mask: ConfidenceBuffer, workers: int = 1) -> PixelBuffer:
    """
    Keep foreground pixels, clear everything else.

    Pixels whose confidence is above the threshold are copied unchanged
    (alpha included). All other pixels become (0, 0, 0, 0).

    Args:
        pixels: Source RGBA image
        mask: Foreground confidence with the same dimensions
        workers: Number of threads; rows are split into contiguous bands

    Returns:
        New PixelBuffer, inputs are not modified

    Raises:
        DimensionMismatchError: mask and image sizes differ
    """
    if (pixels.width, pixels.height) != (mask.width, mask.height):
        raise DimensionMismatchError(
            f"Mask is {mask.width}x{mask.height} but image is {pixels.width}x{pixels.height}"
        )

    out = np.zeros_like(pixels.data)
    bands = min(max(workers, 1), pixels.height)

    if bands <= 1:
        _composite_rows(pixels.data, mask.data, out)
        return PixelBuffer(out)

    bounds = np.linspace(0, pixels.height, bands + 1, dtype=int)
    with ThreadPoolExecutor(max_workers=bands) as pool:
        futures = [
            pool.submit(
                _composite_rows,
                pixels.data[top:bottom],
                mask.data[top:bottom],
                out[top:bottom],
            )
            for top, bottom in zip(bounds[:-1], bounds[1:])
        ]
        for future in futures:
            future.result()

    return PixelBuffer(out)
