"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the admission store can move to a shared backend later without touching
the routes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of an admission check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max admitted requests per window.
        remaining: Remaining admissions in the current window (0 when denied).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Wait time in seconds when denied, None when allowed.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for per-key admission control."""

    @abstractmethod
    def admit(self, key: str, now: float | None = None) -> RateLimitResult:
        """Decide whether one more request for ``key`` may proceed.

        Args:
            key: Client identifier (e.g., network address).
            now: UNIX time in seconds; defaults to the limiter's clock.

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError
