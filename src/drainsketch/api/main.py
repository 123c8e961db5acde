"""
Main FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from drainsketch import __version__
from drainsketch.api.error_handlers import register_error_handlers
from drainsketch.api.geocode import close_geocoder
from drainsketch.api.geocode import router as geocode_router
from drainsketch.api.middleware import (
    LoggingContextMiddleware,
    RequestCorrelationMiddleware,
)
from drainsketch.api.projects import router as projects_router
from drainsketch.api.quote import router as quote_router
from drainsketch.core.config import settings
from drainsketch.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Configure logging on startup and release the geocoder's HTTP client on shutdown.
    """
    log_file = None
    if settings.environment == "production":
        log_file = Path(settings.projects_dir) / "logs" / "drainsketch.log"

    setup_logging(
        log_level="DEBUG" if settings.environment == "development" else "INFO",
        log_file=log_file,
        json_logs=(settings.environment == "production"),
        enable_console=True,
    )
    logger.info(f"Starting Drainsketch API v{__version__} in {settings.environment} mode")

    yield

    logger.info("Shutting down Drainsketch API")
    await close_geocoder()


app = FastAPI(
    title="Drainsketch API",
    description="Drainage layout design and pricing",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

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

app.include_router(projects_router, prefix=settings.api_v1_prefix)
app.include_router(quote_router, prefix=settings.api_v1_prefix)
app.include_router(geocode_router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root() -> dict[str, str]:
    """API name and version."""
    return {
        "name": "Drainsketch API",
        "version": __version__,
        "description": "Drainage layout design and pricing",
    }


@app.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}
