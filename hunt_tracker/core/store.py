"""Process-wide progress store and service wiring.

The store is created once per process by get_progress_store() and torn down
by close_progress_store() during application shutdown. Routes receive the
ProgressService through the get_progress_service() dependency, which tests
can replace via ``app.dependency_overrides``.
"""

from __future__ import annotations

import asyncio
import logging

import aiosqlite

from hunt_tracker.adapters.progress_store.base import AbstractProgressStore
from hunt_tracker.adapters.progress_store.factory import create_progress_store
from hunt_tracker.core.config import settings
from hunt_tracker.core.errors import StorageUnavailableError
from hunt_tracker.services.progress_service import ProgressService

logger = logging.getLogger(__name__)


_store: AbstractProgressStore | None = None
_store_lock: asyncio.Lock | None = None


def _get_lock() -> asyncio.Lock:
    global _store_lock
    if _store_lock is None:
        _store_lock = asyncio.Lock()
    return _store_lock


async def get_progress_store() -> AbstractProgressStore:
    """Return the process-wide progress store, creating it on first use.

    Concurrent first calls share a single initialization.

    Raises:
        StorageUnavailableError: If the backend cannot be opened.
    """

    global _store

    if _store is not None:
        return _store

    async with _get_lock():
        if _store is None:
            try:
                _store = await create_progress_store(settings.app)
            except (aiosqlite.Error, OSError) as exc:
                logger.error(
                    "store.connect_failed",
                    extra={
                        "backend": settings.app.store_backend,
                        "error_type": type(exc).__name__,
                        "error_msg": str(exc),
                    },
                )
                raise StorageUnavailableError(
                    operation="connect",
                    backend=settings.app.store_backend,
                    reason=type(exc).__name__,
                ) from exc
    return _store


async def close_progress_store() -> None:
    """Close the process-wide store. A later get_progress_store() reopens it."""

    global _store, _store_lock

    store, _store = _store, None
    _store_lock = None
    if store is not None:
        await store.close()
        logger.info("store.shutdown", extra={"backend": store.name})


def build_progress_service(store: AbstractProgressStore) -> ProgressService:
    return ProgressService(
        store=store,
        catalog=settings.hunt.catalog,
        timeout_seconds=settings.app.store_timeout_seconds,
        registration_pattern=settings.hunt.registration_pattern,
    )


async def get_progress_service() -> ProgressService:
    """FastAPI dependency returning a ProgressService bound to the shared store."""

    return build_progress_service(await get_progress_store())
