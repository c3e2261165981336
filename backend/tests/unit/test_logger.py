"""Formatters and request correlation in ``taskhub.core.logger``."""

from __future__ import annotations

import json
import logging

from taskhub.core.logger import JSONFormatter, KeyValueFormatter, ensure_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "taskhub.test", logging.INFO, __file__, 1, "hello %s", ("world",), None
    )
    record.request_id = "req-1"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_known_extras():
    line = JSONFormatter().format(_record(token_fp="abc123", outcome="rotated", ignored="x"))
    payload = json.loads(line)

    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["token_fp"] == "abc123"
    assert payload["outcome"] == "rotated"
    assert "ignored" not in payload


def test_key_value_formatter():
    line = KeyValueFormatter().format(_record(user_id=4))
    assert line.startswith("INFO    taskhub.test: hello world")
    assert "request_id=req-1" in line
    assert "user_id=4" in line


def test_request_id_is_echoed(client):
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "trace-me"})
    assert resp.headers["X-Request-ID"] == "trace-me"


def test_correlation_header_is_accepted(client):
    resp = client.get("/api/v1/health", headers={"X-Correlation-ID": "corr-9"})
    assert resp.headers["X-Request-ID"] == "corr-9"


def test_request_id_is_generated(client):
    resp = client.get("/api/v1/health")
    assert len(resp.headers["X-Request-ID"]) == 36


def test_outside_request_a_fresh_id_is_returned(app):
    with app.app_context():
        assert ensure_request_id() != ensure_request_id()


def test_each_request_gets_its_own_id(client):
    first = client.get("/api/v1/health", headers={"X-Request-ID": "one"})
    second = client.get("/api/v1/health", headers={"X-Request-ID": "two"})
    third = client.get("/api/v1/health")

    assert first.headers["X-Request-ID"] == "one"
    assert second.headers["X-Request-ID"] == "two"
    assert third.headers["X-Request-ID"] not in {"one", "two"}
