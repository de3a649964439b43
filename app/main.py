"""
Format Bridge - Main FastAPI Application

Bidirectional format translation between a CSV/XML-only counterparty and a
JSON/REST/event platform:
- File-to-file transformation (input/ -> output/)
- File-to-REST API bridge (api-bridge/ -> POST /api/transactions)
- REST-to-file export (POST /api/export -> exports/)
- Kafka-style pub/sub with server-sent events
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from app.utils.config import Settings, get_settings
from app.api import health, transactions, pubsub
from app.models.schemas import ErrorResponse
from domains.conversion.errors import FormatError, IntegrationError
from domains.hub import IntegrationHub


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stdout with the service format."""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level.upper()
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    hub: IntegrationHub = app.state.hub
    settings = hub.settings
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")

    hub.ensure_directories()
    if settings.watch_enabled:
        hub.start_watchers(asyncio.get_running_loop())
        logger.success("Watching input/ and api-bridge/ for files...")

    yield

    # Cleanup
    logger.info("Shutting down application...")
    hub.stop_watchers()
    logger.success("Application shut down complete")


def create_app(settings: Optional[Settings] = None, hub: Optional[IntegrationHub] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        hub: Pre-built hub; defaults to one built from ``settings``

    Returns:
        Configured application with ``app.state.hub`` set
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="CSV/XML <-> JSON/REST/event format bridge",
        lifespan=lifespan
    )
    app.state.hub = hub or IntegrationHub.from_settings(settings)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FormatError)
    async def format_error_handler(request: Request, exc: FormatError):
        """Unsupported format requested by the caller."""
        logger.warning(f"Rejected request: {exc}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(status="error", error=exc.message, details=exc.details).model_dump()
        )

    @app.exception_handler(IntegrationError)
    async def integration_error_handler(request: Request, exc: IntegrationError):
        """Core failure while serving a request."""
        logger.error(f"{exc.code}: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(status="error", error=exc.message, details=exc.details).model_dump()
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler."""
        logger.error(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error": "Internal server error",
                "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
            }
        )

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(transactions.router, prefix="/api", tags=["Transactions"])
    app.include_router(pubsub.router, prefix="/api", tags=["Pub/Sub"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "Format Bridge",
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
            "health": "/health"
        }

    return app


# Configure logging
configure_logging(get_settings().log_level)

# Create FastAPI app
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
