"""FastAPI dependencies for dependency injection."""

import logging
import time

from bgremover.processing.processor import (
    BackgroundRemover,
    get_shared_remover,
    shutdown_shared_remover,
)
from bgremover.core.config import settings

logger = logging.getLogger(__name__)


def init_processor() -> BackgroundRemover:
    """Create the shared background remover at startup."""
    return get_shared_remover()


def get_processor() -> BackgroundRemover:
    """Get the background remover instance."""
    return get_shared_remover()


def shutdown_processor() -> None:
    """Release the worker threads of the shared instance."""
    shutdown_shared_remover()


def cleanup_old_files(max_age_hours: int = 24) -> int:
    """
    Remove stale downloads left in the cache directory.

    Output files belong to callers and are never touched.

    Returns:
        Number of files removed
    """
    now = time.time()
    max_age_seconds = max_age_hours * 3600
    removed = 0

    if not settings.cache_dir.exists():
        return removed

    for file_path in settings.cache_dir.rglob("*"):
        if file_path.is_file():
            file_age = now - file_path.stat().st_mtime
            if file_age > max_age_seconds:
                file_path.unlink(missing_ok=True)
                removed += 1

    logger.debug("Removed %d stale files from %s", removed, settings.cache_dir)
    return removed
