"""Redis-backed refresh-token store with optimistic (WATCH) rotation."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import redis
from redis.client import Pipeline
from redis.exceptions import RedisError, WatchError

from taskhub.services._shared.errors import StoreUnavailableError
from taskhub.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    generate_refresh_token,
    token_fingerprint,
)

log = logging.getLogger(__name__)

KEY_PREFIX = "rt:"

# Outcome of an optimistic step: False aborts without writing, a callable queues the writes.
Decision = bool | Callable[[Pipeline], None]


def _text(raw: Any) -> str | None:
    if raw is None:
        return None
    return raw.decode() if isinstance(raw, bytes | bytearray) else str(raw)


def _when(raw: Any) -> datetime | None:
    value = _text(raw)
    return datetime.fromisoformat(value) if value else None


def to_hash(record: RefreshTokenRecord) -> dict[str, str]:
    """Hash fields for ``record``; revocation fields only once they are set."""
    fields = {
        "user_id": str(record.user_id),
        "created_at": record.created_at.isoformat(),
        "expires_at": record.expires_at.isoformat(),
    }
    if record.revoked_at is not None:
        fields["revoked_at"] = record.revoked_at.isoformat()
    if record.replaced_by:
        fields["replaced_by"] = record.replaced_by
    return fields


def from_hash(token: str, raw: Mapping[Any, Any]) -> RefreshTokenRecord | None:
    if not raw:
        return None
    fields = {_text(k): v for k, v in raw.items()}
    return RefreshTokenRecord(
        token=token,
        user_id=int(_text(fields["user_id"])),
        created_at=_when(fields["created_at"]),
        expires_at=_when(fields["expires_at"]),
        revoked_at=_when(fields.get("revoked_at")),
        replaced_by=_text(fields.get("replaced_by")),
    )


def ttl_seconds(expires_at: datetime, now: datetime) -> int:
    """Whole seconds until ``expires_at``, never below 1 (Redis rejects 0)."""
    return max(1, math.ceil((expires_at - now).total_seconds()))


@dataclass(slots=True)
class RedisRefreshTokenStore:
    """
    Refresh tokens as Redis hashes at ``rt:{token}``.

    A hash holds ``user_id``, ``created_at`` and ``expires_at``, plus
    ``revoked_at``/``replaced_by`` after revocation, all ISO 8601 UTC. Each
    key expires with its token, so there is nothing to purge.

    Revoke and rotate read under ``WATCH`` and write in ``MULTI``/``EXEC``;
    a concurrent change to a watched key makes ``EXEC`` fail and the step is
    re-run against fresh data. Of two racing rotations exactly one commits.

    :param r: Connected client; its connection errors surface as
        :class:`~taskhub.services._shared.errors.StoreUnavailableError`.
    """

    r: redis.Redis

    def new_token(self) -> str:
        return generate_refresh_token()

    def create(self, record: RefreshTokenRecord) -> None:
        key = KEY_PREFIX + record.token
        with self._unavailable_on_error("create", record.token):
            with self.r.pipeline(transaction=True) as pipe:
                pipe.hset(key, mapping=to_hash(record))
                pipe.expire(key, ttl_seconds(record.expires_at, record.created_at))
                pipe.execute()

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        with self._unavailable_on_error("find", token):
            return from_hash(token, self.r.hgetall(KEY_PREFIX + token))

    def revoke(self, token: str, *, now: datetime) -> bool:
        key = KEY_PREFIX + token

        def decide(pipe: Pipeline) -> Decision:
            current = from_hash(token, pipe.hgetall(key))
            if current is None or current.revoked_at is not None:
                return False
            return lambda tx: tx.hset(key, "revoked_at", now.isoformat())

        with self._unavailable_on_error("revoke", token):
            return self._optimistic([key], decide)

    def rotate(self, *, old_token: str, replacement: RefreshTokenRecord, now: datetime) -> bool:
        old_key = KEY_PREFIX + old_token
        new_key = KEY_PREFIX + replacement.token

        def decide(pipe: Pipeline) -> Decision:
            current = from_hash(old_token, pipe.hgetall(old_key))
            if current is None or not current.is_active(now):
                return False
            if pipe.exists(new_key):
                raise ValueError("Refresh token already exists.")

            def write(tx: Pipeline) -> None:
                tx.hset(
                    old_key,
                    mapping={"revoked_at": now.isoformat(), "replaced_by": replacement.token},
                )
                tx.hset(new_key, mapping=to_hash(replacement))
                tx.expire(new_key, ttl_seconds(replacement.expires_at, now))

            return write

        with self._unavailable_on_error("rotate", old_token):
            return self._optimistic([old_key, new_key], decide)

    def _optimistic(self, keys: list[str], decide: Callable[[Pipeline], Decision]) -> bool:
        """Run ``decide`` under ``WATCH keys`` until its writes commit or it declines."""
        while True:
            # Leaving the ``with`` block resets the pipeline, which also unwatches.
            with self.r.pipeline() as pipe:
                pipe.watch(*keys)
                writes = decide(pipe)
                if writes is False:
                    pipe.unwatch()
                    return False
                pipe.multi()
                writes(pipe)
                try:
                    pipe.execute()
                except WatchError:
                    log.debug("watched key changed; retrying", extra={"outcome": "retry"})
                    continue
                return True

    @contextmanager
    def _unavailable_on_error(self, operation: str, token: str) -> Iterator[None]:
        try:
            yield
        except RedisError as exc:
            log.error(
                "redis %s failed",
                operation,
                extra={"token_fp": token_fingerprint(token), "outcome": "store_error"},
            )
            raise StoreUnavailableError() from exc
