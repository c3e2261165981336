"""Small helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import UTC, datetime, timedelta


@contextmanager
def not_raises(exception: type[BaseException]):
    """Assert that ``exception`` is *not* raised inside the block."""
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


class FakeClock:
    """Mutable clock for deterministic time-based tests.

    Call the instance to read the time; :meth:`advance` moves it forward.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2030, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


def bearer(token: str) -> dict[str, str]:
    """Build an ``Authorization`` header for ``token``."""
    return {"Authorization": f"Bearer {token}"}
