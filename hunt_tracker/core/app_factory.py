from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from hunt_tracker.api.routes import health_router, participants_router, scan_router
from hunt_tracker.core.config import settings
from hunt_tracker.core.exception_handlers import setup_exception_handlers
from hunt_tracker.core.logging import configure_logging
from hunt_tracker.core.middleware import request_id_middleware
from hunt_tracker.core.store import close_progress_store, get_progress_store

logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Hunt", "description": "QR scan landing, registration and progress pages."},
    {"name": "Participants", "description": "Participant progress as JSON."},
    {"name": "Health", "description": "Liveness and storage checks."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the progress store at startup and close it at shutdown."""
    store = await get_progress_store()
    logger.info(
        "app.startup",
        extra={
            "app_env": settings.app_env,
            "store_backend": store.name,
            "catalog_size": len(settings.hunt.catalog),
        },
    )
    try:
        yield
    finally:
        await close_progress_store()
        logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Scavenger Hunt Tracker",
        description=(
            "Tracks scavenger hunt participants: each QR scan records a component "
            "for the participant's registration number, and progress is shown out "
            "of the full catalog. Scans are limited to one per minute per client."
        ),
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(scan_router)
    app.include_router(participants_router, prefix="/v1")
    app.include_router(health_router)

    return app
