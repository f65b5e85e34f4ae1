from __future__ import annotations

from hunt_tracker.api.routes.health import router as health_router
from hunt_tracker.api.routes.participants import router as participants_router
from hunt_tracker.api.routes.scan import router as scan_router

__all__ = ["health_router", "participants_router", "scan_router"]
