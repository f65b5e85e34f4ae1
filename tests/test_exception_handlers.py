"""Tests for global exception handlers.

Validates that domain errors map to the right HTTP status codes, that the
JSON envelope is consistent, and that unexpected errors leak nothing.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from hunt_tracker.core.errors import (
    AppError,
    InvalidCodeError,
    InvalidRegistrationFormatError,
    RateLimitedError,
    StorageUnavailableError,
    ValidationAppError,
)
from hunt_tracker.core.exception_handlers import setup_exception_handlers, status_code_for


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create FastAPI app with exception handlers registered."""
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/invalid-code")
    async def invalid_code():
        raise InvalidCodeError()

    @app.get("/invalid-registration")
    async def invalid_registration():
        raise InvalidRegistrationFormatError(pattern=r"^[A-Z0-9]+$")

    @app.get("/rate-limited")
    async def rate_limited():
        raise RateLimitedError(retry_after=59, limit=1, reset_at=1060)

    @app.get("/storage")
    async def storage():
        raise StorageUnavailableError(operation="add_component", backend="sqlite", reason="timeout")

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    def test_invalid_code_returns_400(self, client: TestClient):
        response = client.get("/invalid-code")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "invalid_code"
        assert data["error"]["message"] == "Invalid QR Code"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_invalid_registration_returns_400_with_pattern(self, client: TestClient):
        response = client.get("/invalid-registration")

        assert response.status_code == 400
        assert response.json()["error"]["details"]["pattern"] == r"^[A-Z0-9]+$"

    def test_rate_limited_returns_429_with_retry_after(self, client: TestClient):
        response = client.get("/rate-limited")

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "59"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert response.json()["error"]["details"]["retry_after"] == 59

    def test_storage_unavailable_returns_500(self, client: TestClient):
        response = client.get("/storage")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "storage_unavailable"

    def test_html_rendering_for_browsers(self, client: TestClient):
        response = client.get("/invalid-code", headers={"Accept": "text/html,application/xhtml+xml"})

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/html")
        assert "<h1" in response.text and "Invalid QR Code" in response.text

    def test_html_escapes_messages(self, app_with_handlers: FastAPI, client: TestClient):
        @app_with_handlers.get("/custom")
        async def custom():
            raise ValidationAppError(code="custom", message="<script>alert(1)</script>")

        response = client.get("/custom", headers={"Accept": "text/html"})

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (InvalidCodeError(), 400),
        (InvalidRegistrationFormatError(pattern="p"), 400),
        (RateLimitedError(retry_after=1, limit=1, reset_at=0), 429),
        (StorageUnavailableError(operation="ping", backend="memory"), 500),
        (AppError(code="generic", message="generic"), 400),
    ],
)
def test_status_code_mapping(error: AppError, expected: int):
    assert status_code_for(error) == expected


class TestGeneralExceptionHandler:
    def test_general_exception_handler_never_leaks_details(self):
        from hunt_tracker.core.exception_handlers import general_exception_handler

        request = AsyncMock()
        request.url.path = "/scan"
        request.method = "GET"

        exc = RuntimeError("database file /srv/hunt.db is locked")
        response = asyncio.run(general_exception_handler(request, exc))

        data = json.loads(bytes(response.body).decode())
        assert response.status_code == 500
        assert data["error"]["code"] == "internal_server_error"
        assert "hunt.db" not in data["error"]["message"]
        assert "RuntimeError" not in bytes(response.body).decode()

    def test_handlers_registered(self, app_with_handlers: FastAPI):
        assert AppError in app_with_handlers.exception_handlers
        assert Exception in app_with_handlers.exception_handlers
