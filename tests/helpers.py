"""Synthetic images and fake segmentation models shared by the tests."""

from __future__ import annotations

import io

import numpy as np
from PIL import Image

from bgremover.processing.models import ConfidenceBuffer, PixelBuffer


class FakeSegmenter:
    """Returns a fixed mask, or one computed from the image, and counts calls."""

    def __init__(self, mask: np.ndarray | None = None) -> None:
        self.mask = mask
        self.calls = 0

    def predict(self, image: Image.Image) -> np.ndarray:
        self.calls += 1
        if self.mask is not None:
            return self.mask
        # Left half foreground, right half background.
        width, height = image.size
        mask = np.zeros((height, width), dtype=np.float32)
        mask[:, : width // 2] = 0.9
        return mask


class FailingSegmenter:
    def predict(self, image: Image.Image) -> np.ndarray:
        raise RuntimeError("model exploded")


def make_pixels(rgba: list[list[tuple[int, int, int, int]]]) -> PixelBuffer:
    return PixelBuffer(np.array(rgba, dtype=np.uint8))


def make_mask(values: list[list[float]]) -> ConfidenceBuffer:
    return ConfidenceBuffer(np.array(values, dtype=np.float32))


def png_bytes(width: int = 4, height: int = 2, color=(200, 100, 50, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()
