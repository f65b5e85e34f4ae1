from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from hunt_tracker.core.errors import StorageUnavailableError
from hunt_tracker.core.store import build_progress_service, get_progress_store
from hunt_tracker.schemas.progress import StoreHealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check used by load balancers and monitoring systems.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get(
    "/health/db",
    response_model=StoreHealthResponse,
    responses={503: {"model": StoreHealthResponse}},
)
async def store_health_check():
    """Round-trip a ping against the progress store.

    Returns 503 with ``status: "unavailable"`` when the store cannot be
    reached, so probes can tell a broken database from a dead process.
    """

    try:
        store = await get_progress_store()
        await build_progress_service(store).check_storage()
    except StorageUnavailableError as exc:
        backend = (exc.details or {}).get("backend", "unknown")
        logger.warning("health.store_unavailable", extra={"backend": backend})
        return JSONResponse(
            status_code=503,
            content=StoreHealthResponse(status="unavailable", store=backend).model_dump(),
        )

    return StoreHealthResponse(status="ok", store=store.name)
