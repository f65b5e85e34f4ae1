"""HTTP middleware for request correlation and access logging.

Every request gets an id (taken from the incoming header or generated),
stored in contextvars so log lines emitted while serving it carry the same
id. The id and the total duration are echoed back in response headers.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from hunt_tracker.core.config import settings
from hunt_tracker.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id to the request, its logs and its response.

    Side Effects:
        - Sets request_id in contextvars for the duration of the request
        - Adds the request id header and X-Request-Duration-ms to the response
        - Logs one ``http.request`` line per request
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
