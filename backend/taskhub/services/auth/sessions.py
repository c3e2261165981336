"""
Refresh-token session lifecycle: issue, validate, rotate, revoke.

A refresh token moves from ``ACTIVE`` to exactly one terminal state:

- ``EXPIRED`` once the clock reaches ``expires_at`` (no write happens);
- ``REVOKED`` by logout or by being rotated (``revoked_at`` is written once).

Rotation is single-use: the store's compare-and-swap decides the single winner
among concurrent callers presenting the same token, and the replacement row is
written in the same transaction as the revoke.
"""

from __future__ import annotations

import logging
from datetime import datetime

from taskhub.core.clock import Clock, utc_now
from taskhub.services._shared.errors import InvalidRefreshTokenError
from taskhub.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenState,
    RefreshTokenStore,
    token_fingerprint,
)
from taskhub.services._shared.ports.user_lookup import UserLookup, UserView
from taskhub.services.auth.dto import SessionOut
from taskhub.services.auth.settings import RefreshTokenPolicy
from taskhub.services.auth.tokens import TokenIssuer

log = logging.getLogger(__name__)


class SessionManager:
    """
    Issue and renew sessions (access token + refresh token pairs).

    :param store: Durable refresh-token store.
    :param users: Read-only user lookup (resolves token owners).
    :param issuer: Access-token signer.
    :param policy: Refresh-token lifetime.
    :param clock: Time source; defaults to :func:`taskhub.core.clock.utc_now`.
    """

    def __init__(
        self,
        *,
        store: RefreshTokenStore,
        users: UserLookup,
        issuer: TokenIssuer,
        policy: RefreshTokenPolicy,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.users = users
        self.issuer = issuer
        self.policy = policy
        self.clock = clock

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue_session(self, user: UserView) -> SessionOut:
        """
        Start a new session for an already authenticated ``user``.

        Exactly one refresh token is written; other sessions of the user are
        left untouched.

        :raises StoreUnavailableError: If the token cannot be persisted.
        """
        record = self._new_record(user)
        self.store.create(record)
        log.info(
            "Session issued",
            extra={"user_id": user.id, "token_fp": token_fingerprint(record.token)},
        )
        return self._session_out(user, record)

    # ------------------------------------------------------------------ #
    # Validate (read-only)
    # ------------------------------------------------------------------ #

    def validate(self, refresh_token: str | None) -> UserView | None:
        """
        Return the owner of an active refresh token, else ``None``.

        Never mutates state; unknown, revoked and expired tokens all map to
        ``None``, as does a token whose owner no longer exists.
        """
        if not refresh_token:
            return None
        record = self.store.find_by_token(refresh_token)
        if record is None or not record.is_active(self.clock()):
            return None
        return self.users.by_id(record.user_id)

    # ------------------------------------------------------------------ #
    # Rotate
    # ------------------------------------------------------------------ #

    def rotate(self, refresh_token: str | None) -> SessionOut:
        """
        Exchange an active refresh token for a brand-new session.

        The presented token is revoked and linked to its replacement. Every
        failure raises the same :class:`InvalidRefreshTokenError` so callers
        cannot tell the causes apart.

        :raises InvalidRefreshTokenError: Unknown, expired, revoked or already
            rotated token, or an owner that no longer exists.
        :raises StoreUnavailableError: If the store cannot be reached.
        """
        if not refresh_token:
            raise InvalidRefreshTokenError()

        fp = token_fingerprint(refresh_token)
        now = self.clock()
        current = self.store.find_by_token(refresh_token)
        state = current.state(now) if current is not None else None
        if current is None or state is not RefreshTokenState.ACTIVE:
            log.warning(
                "Refresh rejected: %s",
                state.value if state else "not_found",
                extra={"token_fp": fp, "outcome": "rejected"},
            )
            raise InvalidRefreshTokenError()

        user = self.users.by_id(current.user_id)
        if user is None:
            log.warning(
                "Refresh rejected: owner missing",
                extra={"token_fp": fp, "user_id": current.user_id, "outcome": "rejected"},
            )
            raise InvalidRefreshTokenError()

        replacement = self._new_record(user, now=now)
        if not self.store.rotate(old_token=refresh_token, replacement=replacement, now=now):
            # Lost the compare-and-swap to a concurrent rotation or logout.
            log.warning(
                "Refresh rejected: lost rotation race",
                extra={"token_fp": fp, "user_id": user.id, "outcome": "rejected"},
            )
            raise InvalidRefreshTokenError()

        log.info(
            "Session rotated",
            extra={
                "user_id": user.id,
                "token_fp": token_fingerprint(replacement.token),
                "outcome": "rotated",
            },
        )
        log.debug("Rotation replaced fp=%s", fp)
        return self._session_out(user, replacement)

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def revoke(self, refresh_token: str | None) -> None:
        """
        Revoke a refresh token. Idempotent.

        Unknown or already revoked tokens are a silent no-op; store failures
        still propagate.
        """
        if not refresh_token:
            return
        changed = self.store.revoke(refresh_token, now=self.clock())
        log.info(
            "Session revoked" if changed else "Revoke was a no-op",
            extra={
                "token_fp": token_fingerprint(refresh_token),
                "outcome": "revoked" if changed else "noop",
            },
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _new_record(self, user: UserView, *, now: datetime | None = None) -> RefreshTokenRecord:
        now = now if now is not None else self.clock()
        return RefreshTokenRecord(
            token=self.store.new_token(),
            user_id=user.id,
            created_at=now,
            expires_at=now + self.policy.lifespan,
        )

    def _session_out(self, user: UserView, record: RefreshTokenRecord) -> SessionOut:
        access = self.issuer.create_access_token(user)
        return SessionOut(
            access_token=access.token,
            access_expires_at=access.expires_at,
            refresh_token=record.token,
            refresh_expires_at=record.expires_at,
            user=user,
        )
