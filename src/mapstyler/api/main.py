"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mapstyler import __version__
from mapstyler.api.crs import router as crs_router
from mapstyler.api.error_handlers import register_error_handlers
from mapstyler.api.geojson import router as geojson_router
from mapstyler.api.middleware import (
    LoggingContextMiddleware,
    RequestCorrelationMiddleware,
)
from mapstyler.api.paint import router as paint_router
from mapstyler.api.styles import router as styles_router
from mapstyler.core.config import settings
from mapstyler.core.logging_config import setup_logging
from mapstyler.core.styles import active_style

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for FastAPI application.

    - Startup: Configure logging
    - Shutdown: Drop the active style
    """
    log_file = None
    if settings.log_dir:
        log_file = Path(settings.log_dir) / "mapstyler.log"

    setup_logging(
        log_file=log_file,
        json_logs=(settings.environment == "production"),
        enable_console=True,
    )
    logger.info(f"Starting mapstyler API v{__version__} in {settings.environment} mode")

    yield

    logger.info("Shutting down mapstyler API")
    active_style.clear()


app = FastAPI(
    title="mapstyler API",
    description="QGIS style conversion, GeoJSON reprojection and rule-based paint expressions",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware for frontend communication
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added in reverse order of execution
app.add_middleware(LoggingContextMiddleware)
app.add_middleware(RequestCorrelationMiddleware)

register_error_handlers(app)

app.include_router(styles_router, prefix=settings.api_v1_prefix)
app.include_router(geojson_router, prefix=settings.api_v1_prefix)
app.include_router(paint_router, prefix=settings.api_v1_prefix)
app.include_router(crs_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    """
    Root endpoint returning API information.

    Returns:
        dict[str, str]: API information including name and version.
    """
    return {
        "name": "mapstyler API",
        "version": __version__,
        "description": "Cartographic styling pipeline",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint.

    Returns:
        dict[str, str]: Health status.
    """
    return {"status": "healthy"}
