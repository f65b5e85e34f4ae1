"""Global exception handlers for consistent error responses.

Design:
- ValidationAppError subclasses → 400 (invalid code, malformed registration number)
- RateLimitedError → 429 with Retry-After
- StorageUnavailableError → 500
- Unexpected Exception → generic 500 (safety net)

Browsers scanning a QR code get an HTML page; API clients get the JSON
envelope ``{"error": {"code", "message", "request_id", "details"?}}``.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from hunt_tracker.adapters.rate_limit.base import RateLimitResult
from hunt_tracker.core.config import settings
from hunt_tracker.core.errors import (
    AppError,
    InvalidCodeError,
    InvalidRegistrationFormatError,
    RateLimitedError,
    StorageUnavailableError,
)
from hunt_tracker.core.logging import get_request_id
from hunt_tracker.core.rate_limit import rate_limit_headers
from hunt_tracker.web.pages import error_page

logger = logging.getLogger(__name__)


def status_code_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitedError):
        return 429
    if isinstance(exc, StorageUnavailableError):
        return 500
    return 400


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


def _html_title(exc: AppError) -> tuple[str, str | None]:
    if isinstance(exc, InvalidCodeError):
        return "Invalid QR Code", None
    if isinstance(exc, InvalidRegistrationFormatError):
        return "Invalid Registration Number", "Use only letters and numbers."
    if isinstance(exc, RateLimitedError):
        return "Slow Down", exc.message
    if isinstance(exc, StorageUnavailableError):
        return "Something Went Wrong", exc.message
    return "Request Failed", exc.message


def _extra_headers(exc: AppError) -> dict[str, str]:
    if not isinstance(exc, RateLimitedError):
        return {}
    if not settings.app.rate_limit_include_headers:
        return {"Retry-After": str(exc.retry_after)}
    return rate_limit_headers(
        RateLimitResult(
            allowed=False,
            limit=exc.limit,
            remaining=0,
            reset_at=exc.reset_at,
            retry_after_seconds=exc.retry_after,
        )
    )


async def app_error_handler(request: Request, exc: AppError) -> Response:
    """Render domain errors as HTML or JSON with the mapped status code.

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        HTMLResponse for browsers, JSONResponse otherwise.
    """
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    headers = _extra_headers(exc)

    if _wants_html(request):
        title, message = _html_title(exc)
        response: Response = error_page(title, message, status_code=status_code)
        response.headers.update(headers)
        return response

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers or None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure and returns a generic message without implementation
    details.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": get_request_id(),
            }
        },
    )


def setup_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app.

    Example:
        >>> from fastapi import FastAPI
        >>> app = FastAPI()
        >>> setup_exception_handlers(app)
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
