"""Scan admission control dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Strategy:
- Fixed window per client network address, one admitted scan per minute by
  default (APP_RATE_LIMIT_REQUESTS / APP_RATE_LIMIT_WINDOW_SECONDS).
- The registration number and code play no part in the key, so a denied
  scan never reaches the progress store.
"""

from __future__ import annotations

import logging

from fastapi import Request

from hunt_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from hunt_tracker.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from hunt_tracker.core.config import settings
from hunt_tracker.core.errors import RateLimitedError
from hunt_tracker.core.logging import hash_identifier

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next request starts with empty state."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def client_key(request: Request) -> str:
    """Build the admission key for the current request from its address."""

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return f"ip:{first_hop}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


async def enforce_scan_admission(request: Request) -> None:
    """FastAPI dependency admitting at most one scan per client per window.

    Raises:
        RateLimitedError: When the client already used its window budget.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    key = client_key(request)
    result = limiter.admit(key)

    log_extra = {
        "key_hash": hash_identifier(key),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
        return

    retry_after = result.retry_after_seconds or 1
    logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": retry_after})

    raise RateLimitedError(
        retry_after=retry_after,
        limit=result.limit,
        reset_at=result.reset_at,
    )
