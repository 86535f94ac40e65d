"""Logging configuration module."""

import logging
from typing import Optional

from bgremover.core.config import Settings, get_settings


def configure_logging(app_settings: Optional[Settings] = None) -> None:
    """Configure root logger from the configured log level."""
    app_settings = app_settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, app_settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
