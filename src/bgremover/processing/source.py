"""Resolve image references into decoded RGBA pixels."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

import httpx
import numpy as np
from PIL import Image, ImageOps

from bgremover.core.exceptions import DecodeError, FetchError
from .models import ImageReference, LocalReference, PixelBuffer, RemoteReference

logger = logging.getLogger(__name__)


def decode_image(path: Union[str, Path]) -> PixelBuffer:
    """
    Decode an image file into an RGBA8888 pixel buffer.

    EXIF orientation is applied, colour profiles are left alone.

    Raises:
        DecodeError: the file is missing, unreadable or not an image
    """
    try:
        with Image.open(path) as img:
            img = ImageOps.exif_transpose(img)
            rgba = img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode image {path}: {e}") from e

    return PixelBuffer(np.array(rgba, dtype=np.uint8))


class ImageSourceResolver:
    """Turns a LocalReference or RemoteReference into pixels."""

    def __init__(
        self,
        cache_dir: Union[str, Path],
        timeout: float = 30.0,
        max_bytes: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the resolver.

        Args:
            cache_dir: Directory for temporary downloads
            timeout: HTTP timeout in seconds
            max_bytes: Reject downloads larger than this (None for no limit)
            transport: Optional httpx transport, mainly for tests
        """
        self.cache_dir = Path(cache_dir)
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.transport = transport

    def resolve(self, ref: ImageReference) -> PixelBuffer:
        if isinstance(ref, RemoteReference):
            return self._resolve_remote(ref)
        if isinstance(ref, LocalReference):
            return decode_image(ref.path)
        raise TypeError(f"Unsupported image reference: {ref!r}")

    def _resolve_remote(self, ref: RemoteReference) -> PixelBuffer:
        download_path = self._download(ref.url)
        try:
            return decode_image(download_path)
        finally:
            download_path.unlink(missing_ok=True)

    def _download(self, url: str) -> Path:
        """
        Stream the response body into a temporary file in the cache dir.

        The file is removed here if the download fails; on success the
        caller owns it.
        """
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix="downloaded_image_", dir=self.cache_dir)
        except OSError as e:
            raise FetchError(f"Cannot create download file in {self.cache_dir}: {e}") from e
        temp_path = Path(name)

        completed = False
        try:
            with os.fdopen(fd, "wb") as out:
                with httpx.Client(
                    transport=self.transport,
                    timeout=self.timeout,
                    follow_redirects=True,
                ) as client:
                    with client.stream("GET", url) as response:
                        if not response.is_success:
                            raise FetchError(
                                f"Failed to download image: {response.status_code} "
                                f"{response.reason_phrase}"
                            )
                        received = 0
                        for chunk in response.iter_bytes():
                            received += len(chunk)
                            if self.max_bytes is not None and received > self.max_bytes:
                                raise FetchError(
                                    f"Image at {url} exceeds {self.max_bytes} bytes"
                                )
                            out.write(chunk)
            completed = True
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            raise FetchError(f"Failed to download image from {url}: {e}") from e
        finally:
            if not completed:
                temp_path.unlink(missing_ok=True)

        logger.debug("Downloaded %s (%d bytes)", url, received)
        return temp_path
