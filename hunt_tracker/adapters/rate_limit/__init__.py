"""Rate limiting adapters.

This package keeps scan admission control behind a small interface so the
in-memory limiter can be replaced by a shared store without changing the API
layer.
"""

from hunt_tracker.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from hunt_tracker.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RateLimitResult"]
