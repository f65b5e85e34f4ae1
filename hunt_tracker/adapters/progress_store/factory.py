"""Factory for progress store backends."""

import logging

from hunt_tracker.adapters.progress_store.base import AbstractProgressStore
from hunt_tracker.adapters.progress_store.in_memory import InMemoryProgressStore
from hunt_tracker.adapters.progress_store.sqlite import SQLiteProgressStore
from hunt_tracker.core.config import AppSettings, settings
from hunt_tracker.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


async def create_progress_store(app_settings: AppSettings | None = None) -> AbstractProgressStore:
    """Instantiate and initialize the configured progress store.

    Args:
        app_settings: Settings to read; defaults to the global settings.

    Returns:
        AbstractProgressStore: Ready-to-use backend.

    Raises:
        ValidationAppError: If the configured backend or URL is not supported.
        RuntimeError: If the SQLite schema version is incompatible.
    """
    cfg = app_settings or settings.app
    backend = cfg.store_backend

    if backend == "memory":
        store: AbstractProgressStore = InMemoryProgressStore()
    elif backend == "sqlite":
        try:
            sqlite_store = SQLiteProgressStore(cfg.database_url)
        except ValueError as exc:
            raise ValidationAppError(
                code="store_invalid_url",
                message=str(exc),
                details={"hint": "Use sqlite:///path/to/hunt.db"},
            ) from exc
        await sqlite_store.initialize()
        store = sqlite_store
    else:
        raise ValidationAppError(
            code="store_unknown_backend",
            message=f"Unknown progress store backend: '{backend}'. Supported: sqlite, memory",
        )

    logger.info("store.selected", extra={"backend": store.name})
    return store
