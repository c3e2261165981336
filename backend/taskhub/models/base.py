"""Column types and mixins shared by the TaskHub models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from taskhub.core.clock import as_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware ``DateTime`` that always round-trips as UTC.

    Aware values are converted to UTC before binding; values read back are
    labelled UTC even on backends (SQLite) that drop the offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is not None and value.tzinfo is not None:
            return value.astimezone(UTC)
        return value

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        return as_utc(value) if value is not None else None


class TimestampMixin:
    """Database-filled ``created_at``/``updated_at``; ``updated_at`` moves on ORM updates."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class PKMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True)


class ReprMixin:
    """
    ``<ClassName id=... attr=...>`` for debugging.

    Models list extra attributes in ``__repr_attrs__``; secrets (password
    hashes, refresh-token values) are never listed.
    """

    __repr_attrs__: tuple[str, ...] = ()

    def __repr__(self) -> str:
        parts = [f"id={getattr(self, 'id', None)}"]
        parts.extend(f"{name}={getattr(self, name, None)!r}" for name in self.__repr_attrs__)
        return f"<{type(self).__name__} {' '.join(parts)}>"
