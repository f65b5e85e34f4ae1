"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from hunt_tracker.core.logging import (
    JsonFormatter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


@pytest.fixture
def capture() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_registration_number_is_redacted(capture):
    logger, stream = capture

    logger.info(
        "scan_event",
        extra={"registration_number": "A12345", "code": "abc123"},
    )

    output = stream.getvalue()
    assert "A12345" not in output
    assert "[REDACTED]" in output
    assert "abc123" in output


def test_nested_cookie_headers_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "request_event",
        extra={"headers": {"Cookie": "registrationNumber=A12345", "user-agent": "pytest"}},
    )

    output = stream.getvalue()
    assert "A12345" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "safe_event",
        extra={"participant_hash": "abcd", "count": 3, "path": "/scan"},
    )

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "safe_event"
    assert payload["count"] == 3
    assert payload["path"] == "/scan"
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture):
    logger, stream = capture

    set_request_id("req-123")
    try:
        logger.info("with_context")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_hash_identifier_is_stable_and_short():
    assert hash_identifier("A12345") == hash_identifier("A12345")
    assert hash_identifier("A12345") != hash_identifier("A12346")
    assert len(hash_identifier("A12345")) == 16
