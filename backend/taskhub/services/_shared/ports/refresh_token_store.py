from __future__ import annotations

import dataclasses
import hashlib
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from taskhub.core.clock import as_utc

#: Bytes of entropy per refresh token (256 bits).
TOKEN_BYTES = 32


def generate_refresh_token() -> str:
    """Return a fresh, URL-safe refresh token with 256 bits of entropy."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def token_fingerprint(token: str) -> str:
    """Short, non-reversible tag for log lines (raw tokens are never logged)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:12]


class RefreshTokenState(str, Enum):
    """Lifecycle of a refresh token: ``ACTIVE`` moves to one of two terminal states."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Read-model for one stored refresh token.

    :ivar token: Opaque token string (unique for all time).
    :ivar user_id: Owning user id.
    :ivar created_at: Issuance instant (UTC).
    :ivar expires_at: Absolute expiry instant (UTC).
    :ivar revoked_at: Revocation instant, ``None`` while not revoked.
    :ivar replaced_by: Token that superseded this one on rotation.
    """

    token: str
    user_id: int
    created_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None
    replaced_by: str | None = None

    def is_active(self, now: datetime) -> bool:
        """Active iff never revoked and ``now`` is strictly before ``expires_at``."""
        return self.revoked_at is None and as_utc(now) < as_utc(self.expires_at)

    def state(self, now: datetime) -> RefreshTokenState:
        if self.revoked_at is not None:
            return RefreshTokenState.REVOKED
        if as_utc(now) >= as_utc(self.expires_at):
            return RefreshTokenState.EXPIRED
        return RefreshTokenState.ACTIVE


class RefreshTokenStore(Protocol):
    """
    Durable store for refresh tokens.

    Implementations MUST make :meth:`rotate` atomic: the conditional revoke of
    the old token and the insert of its replacement either both happen or
    neither does. Infrastructure failures surface as
    :class:`~taskhub.services._shared.errors.StoreUnavailableError`.
    """

    def new_token(self) -> str:
        """Generate a new random refresh token string."""
        ...

    def create(self, record: RefreshTokenRecord) -> None:
        """Persist a brand-new refresh token."""
        ...

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        """Fetch a snapshot of ``token`` (``None`` when unknown)."""
        ...

    def revoke(self, token: str, *, now: datetime) -> bool:
        """
        Conditionally set ``revoked_at = now`` when not yet revoked.

        :returns: ``True`` only when this call performed the transition.
        """
        ...

    def rotate(
        self,
        *,
        old_token: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> bool:
        """
        Atomically revoke ``old_token`` (compare-and-swap on "still active at
        ``now``") and insert ``replacement``.

        :returns: ``True`` when this call won the swap; ``False`` when the old
            token was unknown, expired or already revoked (nothing is written).
        """
        ...


class InMemoryRefreshTokenStore:
    """
    In-memory refresh token store with atomic rotation.

    .. note::
       A single lock serialises every write, which gives the same
       compare-and-swap guarantee as the database adapter.
    """

    def __init__(self) -> None:
        self._records: dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    def new_token(self) -> str:
        return generate_refresh_token()

    def create(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            self._insert(record)

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        with self._lock:
            return self._records.get(token)

    def revoke(self, token: str, *, now: datetime) -> bool:
        with self._lock:
            current = self._records.get(token)
            if current is None or current.revoked_at is not None:
                return False
            self._records[token] = dataclasses.replace(current, revoked_at=now)
            return True

    def rotate(
        self,
        *,
        old_token: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> bool:
        with self._lock:
            current = self._records.get(old_token)
            if current is None or not current.is_active(now):
                return False
            self._insert(replacement)
            self._records[old_token] = dataclasses.replace(
                current, revoked_at=now, replaced_by=replacement.token
            )
            return True

    def __len__(self) -> int:
        return len(self._records)

    # ------------------------- helpers -------------------------

    def _insert(self, record: RefreshTokenRecord) -> None:
        if record.token in self._records:
            raise ValueError("Refresh token already exists.")
        self._records[record.token] = record
