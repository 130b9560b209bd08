"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, gofigure.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gofigure import __version__
from gofigure.api.deps.dependencies import get_service_cache
from gofigure.configs import get_settings
from gofigure.observability import configure_logging
from gofigure.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, jobs_router, models_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    configure_logging(get_settings().log_level)
    logger = logging.getLogger("uvicorn")

    logger.info("Pre-warming service cache...")
    cache = get_service_cache()
    _ = cache.storage
    _ = cache.mesh_client
    _ = cache.artifact_http
    logger.info("Service cache pre-warmed")

    yield

    await cache.aclose()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="GoFigure API",
        description="Photo to figurine image to 3D model generation pipeline",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first and request logs carry the correlation ID.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Versioned JSON API
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(jobs_router, prefix="/api/v1")

    # Model files are served from a stable, unversioned path for viewers
    app.include_router(models_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "gofigure.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
