"""UTC time helpers shared by models, stores and services."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Label naive datetimes as UTC and convert aware ones to UTC.

    SQLite hands back naive values for ``DateTime(timezone=True)`` columns;
    everything this app writes is UTC, so the label is safe.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
