"""In-memory progress store.

Per-process only and lost on restart; used by tests and local runs with
APP_STORE_BACKEND=memory.
"""

from __future__ import annotations

import threading

from hunt_tracker.adapters.progress_store.base import AbstractProgressStore, AddResult


class InMemoryProgressStore(AbstractProgressStore):
    """Dict-of-sets store guarded by a lock."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._components_by_participant: dict[str, set[str]] = {}
        self.writes = 0

    async def add_component(self, registration_number: str, code: str) -> AddResult:
        with self._lock:
            components = self._components_by_participant.setdefault(registration_number, set())
            added = code not in components
            if added:
                components.add(code)
                self.writes += 1
            return AddResult(components=frozenset(components), added=added)

    async def get_components(self, registration_number: str) -> frozenset[str]:
        with self._lock:
            return frozenset(self._components_by_participant.get(registration_number, ()))

    async def ping(self) -> None:
        return None
