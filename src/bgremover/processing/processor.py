"""Main processor that chains resolve, segment, composite and write."""

import asyncio
import atexit
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Callable, Optional, Union

import httpx

from bgremover.core.config import Settings, get_settings
from bgremover.core.exceptions import BackgroundRemoverError
from .compositor import composite
from .models import ImageReference, StoredImage, parse_reference
from .segmentation import RembgSegmenter, SegmentationAdapter, Segmenter
from .source import ImageSourceResolver
from .writer import OutputWriter

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    """Pipeline stages, in execution order."""
    RESOLVING = "resolving"
    SEGMENTING = "segmenting"
    COMPOSITING = "compositing"
    WRITING = "writing"
    DONE = "done"


class BackgroundRemover:
    """
    Background removal pipeline for a single still image.

    Resolves the reference into pixels, asks the segmentation model for a
    foreground confidence map, clears every background pixel and writes
    the result as PNG. The first failing stage aborts the run.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        cache_dir: Union[str, Path],
        segmenter_factory: Optional[Callable[[], Segmenter]] = None,
        model_name: str = "u2net_human_seg",
        request_timeout: float = 30.0,
        max_download_bytes: Optional[int] = None,
        png_compression: int = 9,
        compositor_workers: int = 1,
        max_concurrent_jobs: int = 4,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the processor.

        Args:
            output_dir: Where PNG results are written
            cache_dir: Where remote images are downloaded temporarily
            segmenter_factory: Creates the segmentation model on first use.
                               Defaults to a rembg session for model_name
            model_name: rembg model used by the default factory
            request_timeout: HTTP timeout for remote images, in seconds
            max_download_bytes: Size limit for remote images
            png_compression: PNG compression level (0-9)
            compositor_workers: Threads used to composite one image
            max_concurrent_jobs: Images processed at the same time by
                                 remove_background()
            transport: Optional httpx transport for remote fetches
        """
        if segmenter_factory is None:
            segmenter_factory = partial(RembgSegmenter, model_name)

        self.resolver = ImageSourceResolver(
            cache_dir,
            timeout=request_timeout,
            max_bytes=max_download_bytes,
            transport=transport,
        )
        self.segmentation = SegmentationAdapter(segmenter_factory)
        self.writer = OutputWriter(output_dir, png_compression=png_compression)
        self.compositor_workers = compositor_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_concurrent_jobs,
            thread_name_prefix="bgremover",
        )

    @property
    def is_model_loaded(self) -> bool:
        """Check if the segmentation model is loaded."""
        return self.segmentation.is_loaded

    def process(self, ref: ImageReference) -> StoredImage:
        """
        Run the full pipeline for one image.

        Args:
            ref: Local or remote image reference

        Returns:
            StoredImage for the written PNG

        Raises:
            BackgroundRemoverError: subclass for the failing stage, with
                its ``stage`` attribute set
        """
        stage = Stage.RESOLVING
        try:
            logger.debug("%s: %s", stage.value, ref)
            pixels = self.resolver.resolve(ref)

            stage = Stage.SEGMENTING
            logger.debug("%s: %dx%d", stage.value, pixels.width, pixels.height)
            mask = self.segmentation.segment(pixels)

            stage = Stage.COMPOSITING
            logger.debug(stage.value)
            result = composite(pixels, mask, workers=self.compositor_workers)

            stage = Stage.WRITING
            logger.debug(stage.value)
            stored = self.writer.store(result, ref.file_name)
            stage = Stage.DONE
        except BackgroundRemoverError as e:
            e.stage = stage.value
            logger.warning("Background removal failed while %s: %s", stage.value, e)
            raise

        logger.info("Background removed: %s -> %s", ref, stored.path)
        return stored

    async def remove_background(self, reference: str) -> str:
        """
        Remove the background of the referenced image.

        Args:
            reference: Local path, file:// URI or http(s) URL

        Returns:
            file:// URI of the PNG with transparent background
        """
        ref = parse_reference(reference)
        loop = asyncio.get_running_loop()
        stored = await loop.run_in_executor(self._executor, self.process, ref)
        return stored.uri

    def close(self) -> None:
        """Stop the worker threads."""
        self._executor.shutdown(wait=True)


# Shared instance used by the library entry point and the API
_shared: Optional[BackgroundRemover] = None
_shared_lock = threading.Lock()


def create_remover(app_settings: Optional[Settings] = None) -> BackgroundRemover:
    """Build a background remover from settings. The model loads on first use."""
    app_settings = app_settings or get_settings()
    return BackgroundRemover(
        output_dir=app_settings.output_dir,
        cache_dir=app_settings.cache_dir,
        model_name=app_settings.model_name,
        request_timeout=app_settings.request_timeout_seconds,
        max_download_bytes=app_settings.max_download_bytes,
        png_compression=app_settings.png_compression,
        compositor_workers=app_settings.compositor_workers,
        max_concurrent_jobs=app_settings.max_concurrent_jobs,
    )


def get_shared_remover() -> BackgroundRemover:
    """Get the process-wide remover, creating it on first call."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = create_remover()
        return _shared


def shutdown_shared_remover() -> None:
    """Stop the shared remover's worker threads; a later call creates a new one."""
    global _shared
    with _shared_lock:
        remover, _shared = _shared, None
    if remover is not None:
        remover.close()


atexit.register(shutdown_shared_remover)
