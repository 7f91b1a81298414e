"""Tests for redaction and JSON formatting of decision logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from quota_gate.core.config import LogSettings
from quota_gate.core.logging import (
    ClientKeyRedactor,
    JsonFormatter,
    configure_logging,
    record_extras,
    set_request_id,
)


@pytest.fixture
def decision_log():
    logger = logging.getLogger("test_quota_gate_logging")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(ClientKeyRedactor())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    def _lines() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    yield logger, _lines

    logger.handlers.clear()
    set_request_id(None)


def test_raw_client_identifiers_are_masked(decision_log):
    logger, lines = decision_log

    logger.warning(
        "rate_limit.rejected",
        extra={"client_key": "user-123", "X-Client-ID": "abc", "key_hash": "deadbeef"},
    )

    (payload,) = lines()
    assert payload["client_key"] == "[REDACTED]"
    assert payload["X-Client-ID"] == "[REDACTED]"
    assert payload["key_hash"] == "deadbeef"


def test_identifiers_inside_header_dicts_are_masked(decision_log):
    logger, lines = decision_log

    logger.info(
        "rate_limit.request",
        extra={"headers": {"authorization": "Bearer t0k3n", "user-agent": "pytest"}},
    )

    (payload,) = lines()
    assert payload["headers"] == {"authorization": "[REDACTED]", "user-agent": "pytest"}


def test_decision_line_carries_request_id_from_context(decision_log):
    logger, lines = decision_log
    set_request_id("req-42")

    logger.info("rate_limit.allowed", extra={"strategy": "TokenBucketRateLimiter"})

    (payload,) = lines()
    assert payload["event"] == "rate_limit.allowed"
    assert payload["level"] == "info"
    assert payload["request_id"] == "req-42"
    assert payload["strategy"] == "TokenBucketRateLimiter"


def test_request_id_omitted_outside_a_request(decision_log):
    logger, lines = decision_log

    logger.info("rate_limit.configured", extra={"strategy": "fixed_window"})

    (payload,) = lines()
    assert "request_id" not in payload


def test_record_extras_skips_standard_attributes():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "event", None, None)
    record.key_hash = "abc123"

    assert record_extras(record) == {"key_hash": "abc123"}


def test_configure_logging_installs_single_file_handler(tmp_path):
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    log_file = tmp_path / "decisions.log"

    try:
        configure_logging(LogSettings(output="file", file_path=str(log_file), level="info"))
        logging.getLogger("quota_gate.test").info("rate_limit.allowed", extra={"client_id": "bob"})
        for handler in root.handlers:
            handler.flush()

        assert len(root.handlers) == 1
        payload = json.loads(log_file.read_text().strip())
        assert payload["client_id"] == "[REDACTED]"
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
