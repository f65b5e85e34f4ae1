"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows are anchored per key at the first admitted request, not aligned to
  the wall clock.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from hunt_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


@dataclass
class _WindowState:
    window_start: float
    count: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    A key's window opens with its first request and lasts ``window_seconds``.
    Up to ``limit`` requests are admitted inside it; later ones are denied with
    the time left until the window closes. The next request after that opens a
    fresh window.

    Expired entries are dropped lazily when their key is seen again, and all
    of them are swept at most once per window so idle clients do not pile up.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of admitted requests per window.
            window_seconds: Length of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_key: dict[str, _WindowState] = {}
        self._last_sweep: float | None = None

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    def _is_expired(self, state: _WindowState, now: float) -> bool:
        return now >= state.window_start + self._window_seconds

    def _sweep_expired_locked(self, now: float) -> None:
        if self._last_sweep is not None and now - self._last_sweep < self._window_seconds:
            return
        expired = [k for k, s in self._state_by_key.items() if self._is_expired(s, now)]
        for key in expired:
            del self._state_by_key[key]
        self._last_sweep = now

    def _get_or_open_window(self, key: str, now: float) -> _WindowState:
        state = self._state_by_key.get(key)
        if state is None or self._is_expired(state, now):
            state = _WindowState(window_start=now, count=0)
            self._state_by_key[key] = state
        return state

    def admit(self, key: str, now: float | None = None) -> RateLimitResult:
        """Check and, when allowed, count one request for ``key``.

        Args:
            key: Unique identifier for rate limiting (e.g., client address).
            now: UNIX time in seconds; the injected clock is used when omitted.

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        if now is None:
            now = self._clock()

        with self._lock:
            self._sweep_expired_locked(now)
            state = self._get_or_open_window(key, now)
            reset_at = state.window_start + self._window_seconds

            if state.count < self._limit:
                state.count += 1
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    remaining=self._limit - state.count,
                    reset_at=int(math.ceil(reset_at)),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                remaining=0,
                reset_at=int(math.ceil(reset_at)),
                retry_after_seconds=max(1, int(math.ceil(reset_at - now))),
            )
