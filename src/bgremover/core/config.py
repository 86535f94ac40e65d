"""
Configuration management using Pydantic Settings.

All settings can be overridden via environment variables with BGREMOVER_ prefix.
"""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Server configuration
    host: str = Field(default="0.0.0.0", alias="BGREMOVER_HOST")
    port: int = Field(default=8000, alias="BGREMOVER_PORT")
    workers: int = Field(default=1, alias="BGREMOVER_WORKERS")
    debug: bool = Field(default=False, alias="BGREMOVER_DEBUG")
    log_level: str = Field(default="INFO", alias="BGREMOVER_LOG_LEVEL")

    # Segmentation model (any rembg session name)
    model_name: str = Field(default="u2net_human_seg", alias="BGREMOVER_MODEL_NAME")

    # Storage configuration
    output_dir: Path = Field(default=Path("/app/processed"), alias="BGREMOVER_OUTPUT_DIR")
    cache_dir: Path = Field(default=Path("/app/cache"), alias="BGREMOVER_CACHE_DIR")
    cleanup_age_hours: int = Field(default=24, alias="BGREMOVER_CLEANUP_AGE_HOURS")
    png_compression: int = Field(default=9, ge=0, le=9, alias="BGREMOVER_PNG_COMPRESSION")

    # Remote images
    request_timeout_seconds: float = Field(default=30.0, alias="BGREMOVER_REQUEST_TIMEOUT_SECONDS")
    max_download_size_mb: int = Field(default=20, alias="BGREMOVER_MAX_DOWNLOAD_SIZE_MB")

    # Performance
    max_concurrent_jobs: int = Field(default=4, alias="BGREMOVER_MAX_CONCURRENT_JOBS")
    compositor_workers: int = Field(default=1, ge=1, alias="BGREMOVER_COMPOSITOR_WORKERS")

    # Security
    cors_origins: str = Field(default="*", alias="BGREMOVER_CORS_ORIGINS")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
        "protected_namespaces": (),
    }

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def max_download_bytes(self) -> int:
        """Download size limit in bytes."""
        return self.max_download_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
