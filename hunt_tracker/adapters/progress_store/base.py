"""Progress store interfaces.

The progress service depends on this abstraction only. Backends treat the
store as a key-value mapping from registration number to the set of
collected component codes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class StoreNotInitializedError(RuntimeError):
    """Raised when a backend is used before initialize() or after close()."""


@dataclass(frozen=True)
class AddResult:
    """Outcome of an atomic add-if-absent.

    Attributes:
        components: Codes collected by the participant after the call.
        added: True when this call inserted the code, False for a re-scan.
    """

    components: frozenset[str]
    added: bool


class AbstractProgressStore(ABC):
    """Interface for progress persistence backends."""

    name: str = "abstract"

    @abstractmethod
    async def add_component(self, registration_number: str, code: str) -> AddResult:
        """Create the participant if absent and add ``code`` if absent.

        Must be atomic per (registration_number, code): concurrent calls with
        the same pair insert at most once.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_components(self, registration_number: str) -> frozenset[str]:
        """Return collected codes, or an empty set for unknown participants."""
        raise NotImplementedError

    @abstractmethod
    async def ping(self) -> None:
        """Round-trip a trivial request. Raises if the backend is unreachable."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        return None
