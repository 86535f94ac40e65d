"""Persist composited images as PNG."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

import cv2

from bgremover.core.exceptions import WriteError
from .models import PixelBuffer, StoredImage

logger = logging.getLogger(__name__)

OUTPUT_EXTENSION = ".png"
_REPLACED_EXTENSIONS = (".jpg", ".jpeg")


def normalize_file_name(name: str) -> str:
    """
    Force a .png extension on an output file name.

    photo.jpg -> photo.png, photo -> photo.png, photo.png -> photo.png.
    Other extensions are kept and .png is appended (photo.webp -> photo.webp.png).
    """
    lowered = name.lower()
    if lowered.endswith(OUTPUT_EXTENSION):
        return name
    for ext in _REPLACED_EXTENSIONS:
        if lowered.endswith(ext):
            return name[: -len(ext)] + OUTPUT_EXTENSION
    return name + OUTPUT_EXTENSION


class OutputWriter:
    """Writes RGBA pixel buffers into the output directory."""

    def __init__(self, output_dir: Union[str, Path], png_compression: int = 9):
        self.output_dir = Path(output_dir)
        self.png_compression = png_compression

    def store(self, image: PixelBuffer, desired_name: str) -> StoredImage:
        """
        Encode the image as PNG and write it under the output directory.

        Args:
            image: Composited RGBA image
            desired_name: File name, normalized to a .png extension

        Returns:
            StoredImage pointing at the written file

        Raises:
            WriteError: encoding or any filesystem operation failed
        """
        file_name = normalize_file_name(desired_name)
        target = self.output_dir / file_name
        if "\x00" in file_name or target.parent != self.output_dir or target.name != file_name:
            raise WriteError(f"Output name {desired_name!r} is not a plain file name")

        try:
            bgra = cv2.cvtColor(image.data, cv2.COLOR_RGBA2BGRA)
            ok, encoded = cv2.imencode(
                OUTPUT_EXTENSION, bgra, [cv2.IMWRITE_PNG_COMPRESSION, self.png_compression]
            )
        except cv2.error as e:
            raise WriteError(f"Could not encode {file_name} as PNG: {e}") from e
        if not ok:
            raise WriteError(f"Could not encode {file_name} as PNG")

        temp_name = None
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{file_name}.", suffix=".tmp", dir=self.output_dir
            )
            with os.fdopen(fd, "wb") as f:
                f.write(encoded.tobytes())
            os.replace(temp_name, target)
        except (OSError, ValueError) as e:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise WriteError(f"Could not write {target}: {e}") from e

        logger.debug("Wrote %s (%d bytes)", target, encoded.size)
        return StoredImage(path=target)
