"""Progress tracking for scavenger hunt participants.

The service validates scans against the component catalog, records them in
the injected progress store and reports each participant's state. It holds
no global state: the store, catalog and timeout come from the constructor.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Iterable, TypeVar

import aiosqlite

from hunt_tracker.adapters.progress_store.base import AbstractProgressStore, StoreNotInitializedError
from hunt_tracker.core.errors import (
    InvalidCodeError,
    InvalidRegistrationFormatError,
    StorageUnavailableError,
)
from hunt_tracker.core.logging import hash_identifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

REGISTRATION_PATTERN = r"^[A-Z0-9]+$"


@dataclass(frozen=True)
class ParticipantState:
    """Snapshot of a participant's progress.

    Attributes:
        registration_number: Participant identity.
        components: Distinct catalog codes collected so far.
        catalog_size: Number of codes needed to complete the hunt.
    """

    registration_number: str
    components: frozenset[str]
    catalog_size: int

    @property
    def count(self) -> int:
        return len(self.components)

    @property
    def is_complete(self) -> bool:
        return is_complete(self)

    @property
    def progress_label(self) -> str:
        return f"{self.count}/{self.catalog_size}"


def is_complete(state: ParticipantState) -> bool:
    """True once every catalog component has been collected."""
    return state.count >= state.catalog_size


class ProgressService:
    """Idempotent scan ingestion and progress reads."""

    def __init__(
        self,
        *,
        store: AbstractProgressStore,
        catalog: Iterable[str],
        timeout_seconds: float = 5.0,
        registration_pattern: str = REGISTRATION_PATTERN,
    ) -> None:
        codes = tuple(dict.fromkeys(catalog))
        if not codes:
            raise ValueError("catalog must contain at least one code")
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")

        self._store = store
        self._catalog = codes
        self._catalog_set = frozenset(codes)
        self._timeout = timeout_seconds
        self._registration_pattern = registration_pattern
        self._registration_re = re.compile(registration_pattern)

    @property
    def catalog(self) -> tuple[str, ...]:
        return self._catalog

    @property
    def catalog_size(self) -> int:
        return len(self._catalog)

    def is_valid_code(self, code: str | None) -> bool:
        return code is not None and code in self._catalog_set

    def validate_code(self, code: str | None) -> str:
        """Return ``code`` if it belongs to the catalog.

        Raises:
            InvalidCodeError: If the code is missing or unknown.
        """
        if not self.is_valid_code(code):
            logger.info(
                "progress.invalid_code",
                extra={"code_length": len(code) if code else 0},
            )
            raise InvalidCodeError()
        return code  # type: ignore[return-value]

    def validate_registration_number(self, registration_number: str | None) -> str:
        """Return ``registration_number`` if it has the expected format.

        Raises:
            InvalidRegistrationFormatError: If it is missing or malformed.
        """
        if not registration_number or not self._registration_re.fullmatch(registration_number):
            logger.info(
                "progress.invalid_registration_number",
                extra={"value_length": len(registration_number) if registration_number else 0},
            )
            raise InvalidRegistrationFormatError(pattern=self._registration_pattern)
        return registration_number

    async def _call_store(self, operation: str, awaitable: Awaitable[T]) -> T:
        """Await a store call within the timeout, mapping failures.

        Raises:
            StorageUnavailableError: On timeout or backend failure.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            logger.error(
                "store.unavailable",
                extra={
                    "operation": operation,
                    "backend": self._store.name,
                    "reason": "timeout",
                    "timeout_s": self._timeout,
                },
            )
            raise StorageUnavailableError(
                operation=operation, backend=self._store.name, reason="timeout"
            ) from exc
        except (aiosqlite.Error, OSError, StoreNotInitializedError) as exc:
            logger.error(
                "store.unavailable",
                extra={
                    "operation": operation,
                    "backend": self._store.name,
                    "reason": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise StorageUnavailableError(
                operation=operation, backend=self._store.name, reason=type(exc).__name__
            ) from exc

    def _state(self, registration_number: str, components: frozenset[str]) -> ParticipantState:
        # Codes dropped from the catalog since they were stored do not count.
        return ParticipantState(
            registration_number=registration_number,
            components=components & self._catalog_set,
            catalog_size=self.catalog_size,
        )

    async def record_scan(self, registration_number: str, code: str) -> ParticipantState:
        """Record that ``registration_number`` scanned ``code``.

        Creates the participant on first scan. Re-scanning a collected code
        changes nothing and returns the current state.

        Args:
            registration_number: Participant identity.
            code: Scanned component code.

        Returns:
            ParticipantState after the scan.

        Raises:
            InvalidCodeError: If ``code`` is not in the catalog.
            InvalidRegistrationFormatError: If the registration number is malformed.
            StorageUnavailableError: If the store fails or times out.
        """
        self.validate_code(code)
        self.validate_registration_number(registration_number)

        result = await self._call_store(
            "add_component", self._store.add_component(registration_number, code)
        )
        state = self._state(registration_number, result.components)

        logger.info(
            "progress.scan_recorded" if result.added else "progress.scan_repeated",
            extra={
                "participant_hash": hash_identifier(registration_number),
                "code": code,
                "count": state.count,
                "catalog_size": state.catalog_size,
                "complete": state.is_complete,
            },
        )
        if result.added and state.is_complete:
            logger.info(
                "progress.hunt_completed",
                extra={"participant_hash": hash_identifier(registration_number)},
            )
        return state

    async def get_progress(self, registration_number: str) -> ParticipantState:
        """Return the participant's progress; unknown participants read as empty.

        Raises:
            StorageUnavailableError: If the store fails or times out.
        """
        components = await self._call_store(
            "get_components", self._store.get_components(registration_number)
        )
        return self._state(registration_number, components)

    async def check_storage(self) -> None:
        """Round-trip the store.

        Raises:
            StorageUnavailableError: If the store fails or times out.
        """
        await self._call_store("ping", self._store.ping())
