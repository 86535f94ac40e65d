"""Data objects passed between the pipeline stages."""

import uuid
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Union
from urllib.parse import unquote, urlsplit

import numpy as np


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded RGBA8888 image.

    Holds a (height, width, 4) uint8 array in row-major order.
    """
    data: np.ndarray

    def __post_init__(self):
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {self.data.shape}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.data.dtype}")

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]


@dataclass(frozen=True)
class ConfidenceBuffer:
    """Per-pixel foreground confidence in [0, 1], shape (height, width), float32."""
    data: np.ndarray

    def __post_init__(self):
        if self.data.ndim != 2:
            raise ValueError(f"Expected an (H, W) array, got shape {self.data.shape}")
        if self.data.dtype != np.float32:
            raise ValueError(f"Expected float32 confidences, got {self.data.dtype}")

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]


def _last_segment(path: str) -> str:
    # Basename of the decoded segment: never contains a separator.
    name = PurePosixPath(unquote(path.rstrip("/").rsplit("/", 1)[-1])).name
    if name in ("", ".", "..") or "\x00" in name:
        return ""
    return name


@dataclass(frozen=True)
class LocalReference:
    """Image on the local filesystem."""
    path: Path

    @property
    def file_name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RemoteReference:
    """Image reachable over http(s)."""
    url: str
    fallback_name: str = field(
        default_factory=lambda: f"image-{uuid.uuid4().hex[:8]}",
        compare=False,
    )

    @property
    def file_name(self) -> str:
        return _last_segment(urlsplit(self.url).path) or self.fallback_name


ImageReference = Union[LocalReference, RemoteReference]


def parse_reference(reference: str) -> ImageReference:
    """
    Decide once whether a reference string points to a local or remote image.

    Args:
        reference: Plain filesystem path, file:// URI or http(s) URL

    Returns:
        LocalReference or RemoteReference
    """
    parts = urlsplit(reference)
    scheme = parts.scheme.lower()

    if scheme in ("http", "https"):
        return RemoteReference(url=reference)
    if scheme == "file":
        return LocalReference(path=Path(unquote(parts.path)))
    return LocalReference(path=Path(reference))


@dataclass(frozen=True)
class StoredImage:
    """Final PNG written by the pipeline. The caller owns the file."""
    path: Path

    @property
    def uri(self) -> str:
        return self.path.resolve().as_uri()
