"""Foreground segmentation using rembg with u2net_human_seg model."""

import logging
import threading
from typing import Callable, Optional, Protocol

import numpy as np
from PIL import Image
from rembg import new_session, remove

from bgremover.core.exceptions import SegmentationError
from .models import ConfidenceBuffer, PixelBuffer

logger = logging.getLogger(__name__)


class Segmenter(Protocol):
    """Anything that maps an image to an (H, W) foreground confidence map in [0, 1]."""

    def predict(self, image: Image.Image) -> np.ndarray: ...


class RembgSegmenter:
    """AI-powered person segmentation using a rembg session."""

    def __init__(self, model_name: str = "u2net_human_seg"):
        """
        Initialize the segmenter.

        Args:
            model_name: The rembg model to use. Default is u2net_human_seg
                       which is optimized for human segmentation.
        """
        self.model_name = model_name
        self.session = new_session(model_name)

    def predict(self, image: Image.Image) -> np.ndarray:
        """
        Predict foreground confidence.

        Args:
            image: RGB PIL image

        Returns:
            float32 array (H, W) in [0, 1]
        """
        mask = remove(image, session=self.session, only_mask=True)
        return np.asarray(mask, dtype=np.float32) / 255.0


class SegmentationAdapter:
    """
    Runs the segmentation model on a pixel buffer.

    The segmenter is created on first use and reused afterwards; creation
    happens at most once even with concurrent callers.
    """

    def __init__(self, segmenter_factory: Callable[[], Segmenter]):
        self._factory = segmenter_factory
        self._segmenter: Optional[Segmenter] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        """Check if the segmentation model has been created."""
        return self._segmenter is not None

    def _get_segmenter(self) -> Segmenter:
        if self._segmenter is None:
            with self._lock:
                if self._segmenter is None:
                    logger.info("Loading segmentation model")
                    try:
                        self._segmenter = self._factory()
                    except Exception as e:
                        raise SegmentationError(f"Could not load segmentation model: {e}") from e
        return self._segmenter

    def segment(self, pixels: PixelBuffer) -> ConfidenceBuffer:
        """
        Compute the foreground confidence of every pixel.

        Args:
            pixels: Decoded RGBA image

        Returns:
            ConfidenceBuffer from the model, not yet checked against the
            image dimensions
        """
        segmenter = self._get_segmenter()
        image = Image.fromarray(pixels.data).convert("RGB")

        try:
            confidence = np.asarray(segmenter.predict(image), dtype=np.float32)
        except Exception as e:
            raise SegmentationError(f"Segmentation failed: {e}") from e

        if confidence.ndim != 2:
            raise SegmentationError(
                f"Segmentation returned a mask of shape {confidence.shape}, expected (H, W)"
            )
        return ConfidenceBuffer(confidence)
