"""
Main HTTP server for the Labwatch inventory API.

Serves snapshot ingestion, the fleet listing and dashboard statistics.
"""

import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..core.config import AppConfig, get_config
from ..core.exceptions import (
    LabwatchError,
    labwatch_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from ..inventory.service import InventoryService
from .device_api import router as device_router
from .device_api import stats_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[InventoryService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Application config (default: global config)
        service: Pre-built inventory service; created lazily when omitted

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()

    app = FastAPI(
        title="Labwatch API",
        description="Lab computer inventory and hardware change tracking API",
        version=__version__,
    )
    app.state.inventory_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LabwatchError, labwatch_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(device_router)
    app.include_router(stats_router)

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": "Labwatch API",
            "version": __version__,
            "endpoints": {
                "pcs": "/api/pcs",
                "stats": "/api/stats",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    """Main entry point for HTTP server."""
    config = get_config()
    host = config.api.host
    port = config.api.port

    logger.info("=" * 60)
    logger.info("Labwatch - Inventory API Server")
    logger.info("=" * 60)
    logger.info(f"Host: {host}")
    logger.info(f"Port: {port}")
    logger.info(f"Database: {config.database.path}")
    logger.info(f"Offline after: {config.monitor.stale_after_hours}h without contact")
    logger.info("=" * 60)
    logger.info(f"API Documentation: http://{host}:{port}/docs")
    logger.info("=" * 60)

    uvicorn.run(
        "labwatch.ui.http_server:app",
        host=host,
        port=port,
        reload=config.api.reload,
    )


if __name__ == "__main__":
    main()
