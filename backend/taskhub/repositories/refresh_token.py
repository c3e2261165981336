"""Refresh token repository: lookups plus the conditional updates rotation relies on."""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import and_, delete, or_, select, update

from taskhub.models.refresh_token import RefreshToken
from taskhub.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """
    Persistence for :class:`RefreshToken` rows.

    The two writes that change token state are single conditional ``UPDATE``
    statements; callers read ``rowcount`` to learn whether they won.
    """

    model = RefreshToken

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Fetch the row for ``token``, bypassing stale identity-map state."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(populate_existing=True)
        )
        return self.first(stmt)

    def revoke_if_active(
        self, token: str, *, now: datetime, replaced_by: str | None = None
    ) -> bool:
        """
        Compare-and-swap: revoke ``token`` only while it is still active.

        Emits ``UPDATE ... WHERE token = :t AND revoked_at IS NULL AND
        expires_at > :now``.

        :returns: ``True`` when exactly one row changed.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.token == token,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(revoked_at=now, replaced_by=replaced_by)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def revoke_if_unrevoked(self, token: str, *, now: datetime) -> bool:
        """
        Set ``revoked_at`` when it is still ``NULL`` (expired tokens included).

        :returns: ``True`` when this call performed the transition.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == token, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def purge(self, *, now: datetime, retention: timedelta) -> int:
        """
        Delete rows that expired or were revoked more than ``retention`` ago.

        :returns: Number of deleted rows.
        """
        cutoff = now - retention
        stmt = (
            delete(RefreshToken)
            .where(
                or_(
                    RefreshToken.expires_at <= cutoff,
                    and_(RefreshToken.revoked_at.is_not(None), RefreshToken.revoked_at <= cutoff),
                )
            )
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
