"""
FastAPI application factory and configuration.

This module creates the bridge's HTTP API and ties the lifetime of the
tus helper process to the lifetime of the application.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI

from ...application.startup import ApplicationStartup
from ...infrastructure.config.models import ApplicationConfig
from .middleware import ErrorHandlerMiddleware, RequestIdMiddleware
from .routers import health, uploads

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Starts the helper process before serving and always stops it on the
    way out.
    """
    startup: ApplicationStartup = app.state.startup
    logger.info("Application starting up...")
    await startup.start_application()
    try:
        yield
    finally:
        logger.info("Application shutting down...")
        await startup.stop_application()


def create_app(startup: ApplicationStartup, config: ApplicationConfig) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        startup: Configured application startup manager
        config: Application configuration

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=config.name,
        version=config.version,
        description="Resumable upload bridge in front of a tusd helper process",
        debug=config.debug,
        lifespan=lifespan
    )

    app.state.startup = startup
    app.state.config = config
    app.state.upload_broker = startup.upload_broker
    app.state.content_store = startup.content_store

    _configure_middleware(app)
    _register_routes(app)

    logger.info(f"FastAPI application created: {config.name} v{config.version}")
    return app


def _configure_middleware(app: FastAPI) -> None:
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)


def _register_routes(app: FastAPI) -> None:
    app.include_router(
        health.router,
        prefix="/health",
        tags=["health"]
    )

    app.include_router(
        uploads.router,
        prefix="/uploads",
        tags=["uploads"]
    )

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with basic application information."""
        return {
            "name": app.title,
            "version": app.version,
            "status": "running",
            "health_url": "/health"
        }
