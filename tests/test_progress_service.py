"""Tests for ProgressService scan ingestion and progress reads."""

import asyncio

import pytest

from hunt_tracker.adapters.progress_store.base import AbstractProgressStore, AddResult
from hunt_tracker.adapters.progress_store.in_memory import InMemoryProgressStore
from hunt_tracker.core.errors import (
    InvalidCodeError,
    InvalidRegistrationFormatError,
    StorageUnavailableError,
)
from hunt_tracker.services.progress_service import ParticipantState, ProgressService, is_complete

CATALOG = ("abc123", "def456", "ghi789", "jkl012", "mno345")


class HangingStore(AbstractProgressStore):
    """Store whose calls never finish, to exercise the timeout."""

    name = "hanging"

    async def add_component(self, registration_number: str, code: str) -> AddResult:
        await asyncio.sleep(10)
        raise AssertionError("unreachable")

    async def get_components(self, registration_number: str) -> frozenset[str]:
        await asyncio.sleep(10)
        raise AssertionError("unreachable")

    async def ping(self) -> None:
        await asyncio.sleep(10)


class BrokenStore(AbstractProgressStore):
    name = "broken"

    async def add_component(self, registration_number: str, code: str) -> AddResult:
        raise OSError("disk unavailable")

    async def get_components(self, registration_number: str) -> frozenset[str]:
        raise OSError("disk unavailable")

    async def ping(self) -> None:
        raise OSError("disk unavailable")


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore()


@pytest.fixture
def service(store: InMemoryProgressStore) -> ProgressService:
    return ProgressService(store=store, catalog=CATALOG)


class TestRecordScan:
    def test_first_scan_creates_participant(self, service: ProgressService) -> None:
        state = asyncio.run(service.record_scan("A12345", "abc123"))

        assert state.registration_number == "A12345"
        assert state.components == frozenset({"abc123"})
        assert state.count == 1
        assert state.catalog_size == 5
        assert state.is_complete is False

    def test_rescan_is_idempotent(self, service: ProgressService, store: InMemoryProgressStore) -> None:
        once = asyncio.run(service.record_scan("A12345", "abc123"))
        twice = asyncio.run(service.record_scan("A12345", "abc123"))

        assert once == twice
        assert twice.count == 1
        assert store.writes == 1

    def test_count_is_monotonic(self, service: ProgressService) -> None:
        sequence = ["abc123", "abc123", "def456", "abc123", "ghi789", "def456"]
        counts = [asyncio.run(service.record_scan("B1", code)).count for code in sequence]

        assert counts == [1, 1, 2, 2, 3, 3]
        assert counts == sorted(counts)

    def test_invalid_code_changes_nothing(self, service: ProgressService, store: InMemoryProgressStore) -> None:
        asyncio.run(service.record_scan("A12345", "abc123"))

        with pytest.raises(InvalidCodeError) as exc_info:
            asyncio.run(service.record_scan("A12345", "zzz999"))

        assert exc_info.value.code == "invalid_code"
        assert store.writes == 1
        state = asyncio.run(service.get_progress("A12345"))
        assert state.components == frozenset({"abc123"})

    def test_invalid_code_for_new_participant_creates_nothing(self, service: ProgressService) -> None:
        with pytest.raises(InvalidCodeError):
            asyncio.run(service.record_scan("NEW1", ""))

        assert asyncio.run(service.get_progress("NEW1")).count == 0

    @pytest.mark.parametrize("registration_number", ["", "a12345", "A-12345", "A 1", "ÄBC"])
    def test_malformed_registration_number_rejected(
        self, service: ProgressService, store: InMemoryProgressStore, registration_number: str
    ) -> None:
        with pytest.raises(InvalidRegistrationFormatError):
            asyncio.run(service.record_scan(registration_number, "abc123"))

        assert store.writes == 0

    def test_concurrent_scans_of_same_code_insert_once(
        self, service: ProgressService, store: InMemoryProgressStore
    ) -> None:
        async def scan_many() -> list[ParticipantState]:
            return await asyncio.gather(
                *(service.record_scan("C777", "ghi789") for _ in range(25))
            )

        states = asyncio.run(scan_many())

        assert {s.count for s in states} == {1}
        assert store.writes == 1


class TestGetProgress:
    def test_unknown_participant_reads_as_empty(self, service: ProgressService) -> None:
        state = asyncio.run(service.get_progress("UNKNOWN123"))

        assert state.count == 0
        assert state.components == frozenset()
        assert state.is_complete is False

    def test_completion_only_after_all_codes(self, service: ProgressService) -> None:
        for index, code in enumerate(CATALOG, start=1):
            asyncio.run(service.record_scan("A12345", code))
            state = asyncio.run(service.get_progress("A12345"))
            assert state.count == index
            assert state.is_complete is (index == len(CATALOG))

    def test_progress_label(self, service: ProgressService) -> None:
        asyncio.run(service.record_scan("A12345", "abc123"))
        assert asyncio.run(service.get_progress("A12345")).progress_label == "1/5"

    def test_codes_outside_catalog_are_not_counted(self, store: InMemoryProgressStore) -> None:
        asyncio.run(store.add_component("A1", "retired"))
        service = ProgressService(store=store, catalog=CATALOG)

        assert asyncio.run(service.get_progress("A1")).count == 0


class TestConfiguration:
    def test_smaller_catalog_completes_sooner(self, store: InMemoryProgressStore) -> None:
        service = ProgressService(store=store, catalog=["one", "two"])

        asyncio.run(service.record_scan("Z9", "one"))
        state = asyncio.run(service.record_scan("Z9", "two"))

        assert state.catalog_size == 2
        assert is_complete(state) is True

    def test_duplicate_catalog_entries_collapse(self, store: InMemoryProgressStore) -> None:
        service = ProgressService(store=store, catalog=["one", "one", "two"])
        assert service.catalog == ("one", "two")
        assert service.catalog_size == 2

    def test_empty_catalog_rejected(self, store: InMemoryProgressStore) -> None:
        with pytest.raises(ValueError):
            ProgressService(store=store, catalog=[])

    def test_non_positive_timeout_rejected(self, store: InMemoryProgressStore) -> None:
        with pytest.raises(ValueError):
            ProgressService(store=store, catalog=CATALOG, timeout_seconds=0)


class TestStorageFailures:
    def test_timeout_surfaces_as_storage_unavailable(self) -> None:
        service = ProgressService(store=HangingStore(), catalog=CATALOG, timeout_seconds=0.05)

        with pytest.raises(StorageUnavailableError) as exc_info:
            asyncio.run(service.record_scan("A12345", "abc123"))

        assert exc_info.value.details["hint"] == "timeout"
        assert exc_info.value.details["backend"] == "hanging"

    def test_read_timeout_surfaces_as_storage_unavailable(self) -> None:
        service = ProgressService(store=HangingStore(), catalog=CATALOG, timeout_seconds=0.05)

        with pytest.raises(StorageUnavailableError):
            asyncio.run(service.get_progress("A12345"))

    def test_backend_error_surfaces_as_storage_unavailable(self) -> None:
        service = ProgressService(store=BrokenStore(), catalog=CATALOG)

        with pytest.raises(StorageUnavailableError) as exc_info:
            asyncio.run(service.record_scan("A12345", "abc123"))

        assert exc_info.value.details["hint"] == "OSError"

    def test_check_storage_maps_failures(self) -> None:
        service = ProgressService(store=BrokenStore(), catalog=CATALOG)

        with pytest.raises(StorageUnavailableError):
            asyncio.run(service.check_storage())

    def test_validation_happens_before_storage(self) -> None:
        service = ProgressService(store=BrokenStore(), catalog=CATALOG)

        with pytest.raises(InvalidCodeError):
            asyncio.run(service.record_scan("A12345", "nope"))

    def test_backend_bug_is_not_reported_as_unavailable(self) -> None:
        class BuggyStore(BrokenStore):
            async def get_components(self, registration_number: str) -> frozenset[str]:
                raise RuntimeError("unexpected state")

        service = ProgressService(store=BuggyStore(), catalog=CATALOG)

        with pytest.raises(RuntimeError, match="unexpected state"):
            asyncio.run(service.get_progress("A12345"))
