"""
bgremover - Background Removal API

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bgremover import __version__
from bgremover.core.config import settings
from bgremover.core.logging import configure_logging
from bgremover.api.routes import health_router, process_router
from bgremover.api.dependencies import init_processor, shutdown_processor, cleanup_old_files

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging(settings)
    logger.info("bgremover %s starting", __version__)

    init_processor()
    logger.info("Segmentation model: %s (loaded on first request)", settings.model_name)

    removed = cleanup_old_files(settings.cleanup_age_hours)
    logger.info("Removed %d stale downloads", removed)

    yield

    # Shutdown
    logger.info("Shutting down...")
    shutdown_processor()


# Create FastAPI application
app = FastAPI(
    title="bgremover API",
    description="""
## Background Removal API

Removes the background of a single still image:
- **Segmentation** with the u2net_human_seg model
- **Compositing**: background pixels become fully transparent
- **Output** is always PNG, written to the configured output directory

Send a local path, `file://` URI or `http(s)` URL to `/api/v1/remove-background`.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url=None,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health_router)
app.include_router(process_router)


# Root endpoint redirects to docs
@app.get("/", include_in_schema=False)
async def root():
    """Redirect to API documentation."""
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/docs")


def run():
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "bgremover.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers
    )


if __name__ == "__main__":
    run()
