"""Progress store adapters.

Backends persist which catalog components each registration number has
collected. The service layer only sees AbstractProgressStore.
"""

from hunt_tracker.adapters.progress_store.base import (
    AbstractProgressStore,
    AddResult,
    StoreNotInitializedError,
)
from hunt_tracker.adapters.progress_store.in_memory import InMemoryProgressStore
from hunt_tracker.adapters.progress_store.sqlite import SQLiteProgressStore

__all__ = [
    "AbstractProgressStore",
    "AddResult",
    "InMemoryProgressStore",
    "SQLiteProgressStore",
    "StoreNotInitializedError",
]
