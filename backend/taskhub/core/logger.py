"""Structured logging with request correlation.

Every record carries a ``request_id`` taken from ``X-Request-ID`` or
``X-Correlation-ID`` (or generated), which is echoed back in the response.
``LOG_FORMAT=json`` (default) emits one JSON object per line; ``text`` emits a
compact ``key=value`` line for local development.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = ("X-Request-ID", "X-Correlation-ID")

# ``extra=`` keys promoted to top-level fields
EXTRA_KEYS = ("endpoint", "elapsed_ms", "status", "user_id", "token_fp", "outcome")


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)}


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(_extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-friendly ``LEVEL name: message key=value ...`` lines."""

    def format(self, record: logging.LogRecord) -> str:
        line = f"{record.levelname:<7} {record.name}: {record.getMessage()}"
        fields = {"request_id": getattr(record, "request_id", None), **_extras(record)}
        pairs = " ".join(f"{k}={v}" for k, v in fields.items() if v is not None)
        if pairs:
            line = f"{line} {pairs}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class RequestIdFilter(logging.Filter):
    """Ensure a ``request_id`` attribute is always present on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def ensure_request_id() -> str:
    """Return the current request identifier, generating one when necessary."""

    if not has_request_context():
        return str(uuid4())
    if hasattr(g, "request_id"):
        return g.request_id  # type: ignore[return-value]
    supplied = [request.headers.get(h) for h in CORRELATION_HEADERS]
    g.request_id = next((v for v in supplied if v), None) or str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO", fmt: str = "json") -> None:
    """Route the root logger to stdout with the selected formatter."""

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(KeyValueFormatter() if fmt == "text" else JSONFormatter())
    handler.addFilter(RequestIdFilter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO
    root.setLevel(level)


def init_app(app: Flask) -> None:
    """Seed request ids, echo them back and log one line per request."""

    app.logger.addFilter(RequestIdFilter())
    access_log = logging.getLogger("taskhub.access")

    @app.before_request
    def _start_request() -> None:
        # ``g`` lives as long as the app context, which may span several requests.
        g.pop("request_id", None)
        ensure_request_id()
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        started = g.pop("request_started", None)
        if started is not None:
            access_log.info(
                "%s %s",
                request.method,
                request.path,
                extra={
                    "endpoint": request.endpoint,
                    "status": response.status_code,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id"]
