"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any hunt_tracker import so settings
pick up the in-memory store and the testing environment.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ["APP_STORE_BACKEND"] = "memory"
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_FORMAT", "plain")

import pytest

from hunt_tracker.adapters.progress_store.in_memory import InMemoryProgressStore
from hunt_tracker.core import rate_limit as rate_limit_module
from hunt_tracker.core import store as store_module

CATALOG = ("abc123", "def456", "ghi789", "jkl012", "mno345")


@pytest.fixture(autouse=True)
def fresh_shared_state(monkeypatch: pytest.MonkeyPatch):
    """Give every test an empty progress store and admission map."""
    store = InMemoryProgressStore()
    monkeypatch.setattr(store_module, "_store", store)
    monkeypatch.setattr(store_module, "_store_lock", None)
    rate_limit_module.reset_rate_limiter()
    yield store
    rate_limit_module.reset_rate_limiter()


@pytest.fixture
def memory_store(fresh_shared_state: InMemoryProgressStore) -> InMemoryProgressStore:
    """The in-memory store the app uses during this test."""
    return fresh_shared_state
