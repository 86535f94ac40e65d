"""Custom exceptions for the background remover."""

from typing import Optional


class BackgroundRemoverError(Exception):
    """Base exception for bgremover."""

    code = "processing_failed"

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class FetchError(BackgroundRemoverError):
    """Raised when a remote image cannot be downloaded."""

    code = "fetch_failed"


class DecodeError(BackgroundRemoverError):
    """Raised when image bytes cannot be read or decoded."""

    code = "decode_failed"


class DimensionMismatchError(BackgroundRemoverError):
    """Raised when a confidence mask does not match the image dimensions."""

    code = "dimension_mismatch"


class SegmentationError(BackgroundRemoverError):
    """Raised when the segmentation model fails to load or to run."""

    code = "segmentation_failed"


class WriteError(BackgroundRemoverError):
    """Raised when the output image cannot be persisted."""

    code = "write_failed"
