"""Tests for structured logging."""
import json
import logging

from inbox_sla.shared.infrastructure.logging import CustomJsonFormatter, correlation_id_var


def format_record(**extra):
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("inbox_sla.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


def test_adds_environment_and_timestamp():
    payload = format_record(tenant_id="tenant-1")

    assert payload["message"] == "hello"
    assert payload["environment"] == "test"
    assert payload["tenant_id"] == "tenant-1"
    assert "timestamp" in payload


def test_correlation_id_from_context():
    token = correlation_id_var.set("req-123")
    try:
        payload = format_record()
    finally:
        correlation_id_var.reset(token)

    assert payload["correlation_id"] == "req-123"


def test_secrets_are_redacted():
    payload = format_record(api_key="sk-live", access_token="abc")

    assert payload["api_key"] == "***REDACTED***"
    assert payload["access_token"] == "***REDACTED***"
