"""
Health check endpoint.
"""

from fastapi import APIRouter, Request
from datetime import datetime

from app.models.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint.

    Verifies:
    - API is running
    - Drop-zone watchers are alive
    """
    hub = request.app.state.hub
    watchers = hub.watcher_status()
    degraded = hub.settings.watch_enabled and not all(watchers.values())

    return HealthResponse(
        status="degraded" if degraded else "healthy",
        timestamp=datetime.now(),
        version=hub.settings.api_version,
        watchers=watchers,
        transactions=hub.store.count,
        topics=len(hub.bus.topics()),
    )
