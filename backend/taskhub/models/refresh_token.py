"""Server-side refresh token rows."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.core.clock import as_utc, utc_now
from taskhub.core.extensions import db

from .base import PKMixin, ReprMixin, UTCDateTime

if TYPE_CHECKING:
    from .user import User


class RefreshToken(PKMixin, ReprMixin, db.Model):
    """
    One issued session-renewal credential.

    Rows are immutable except for the single transition of ``revoked_at``
    (and ``replaced_by`` on rotation) from ``NULL`` to a value. Cleanup of old
    rows is left to ``flask tokens purge``.

    Fields
    ------
    token : str
        Opaque random string (256 bits, URL-safe base64), unique for all time.
    user_id : int
        Owning user.
    created_at / expires_at : datetime
        Issuance time and absolute expiry (UTC).
    revoked_at : datetime | None
        Set exactly once by logout or rotation.
    replaced_by : str | None
        Token that superseded this one on rotation (audit only).
    """

    __tablename__ = "refresh_tokens"
    __repr_attrs__ = ("user_id", "expires_at", "revoked_at")

    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    replaced_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (Index("ix_refresh_tokens_expires_at", "expires_at"),)

    def is_active(self, now: datetime | None = None) -> bool:
        """Return ``True`` while not revoked and strictly before ``expires_at``."""
        now = now or utc_now()
        return self.revoked_at is None and now < as_utc(self.expires_at)
