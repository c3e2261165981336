"""Relational refresh-token store built on the unit of work."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskhub.core.clock import as_utc
from taskhub.models.refresh_token import RefreshToken
from taskhub.services._shared.errors import StoreUnavailableError
from taskhub.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    generate_refresh_token,
    token_fingerprint,
)
from taskhub.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        token=row.token,
        user_id=row.user_id,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
        revoked_at=as_utc(row.revoked_at) if row.revoked_at else None,
        replaced_by=row.replaced_by,
    )


def _to_row(record: RefreshTokenRecord) -> RefreshToken:
    return RefreshToken(
        token=record.token,
        user_id=record.user_id,
        created_at=record.created_at,
        expires_at=record.expires_at,
        revoked_at=record.revoked_at,
        replaced_by=record.replaced_by,
    )


class SQLAlchemyRefreshTokenStore:
    """
    :class:`~taskhub.services._shared.ports.RefreshTokenStore` over ``refresh_tokens``.

    Every write runs in its own read-write unit of work (commit on success,
    rollback on any exception). Rotation is a conditional ``UPDATE`` followed
    by the ``INSERT`` of the replacement in the same transaction, so a failed
    insert never leaves the old token revoked.

    :param session: Optional explicit session; defaults to the Flask-scoped one.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def _rw(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session=self._session)

    def _ro(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork(session=self._session)

    # ------------------------------------------------------------------ #
    # Port API
    # ------------------------------------------------------------------ #

    def new_token(self) -> str:
        return generate_refresh_token()

    def create(self, record: RefreshTokenRecord) -> None:
        try:
            with self._rw() as uow:
                uow.refresh_tokens.add(_to_row(record))
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            log.error("Refresh token insert failed", extra={"outcome": "store_error"})
            raise StoreUnavailableError() from exc

    def find_by_token(self, token: str) -> RefreshTokenRecord | None:
        try:
            with self._ro() as uow:
                row = uow.refresh_tokens.get_by_token(token)
                return _to_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StoreUnavailableError() from exc

    def revoke(self, token: str, *, now: datetime) -> bool:
        try:
            with self._rw() as uow:
                return uow.refresh_tokens.revoke_if_unrevoked(token, now=now)
        except SQLAlchemyError as exc:
            log.error(
                "Refresh token revoke failed",
                extra={"token_fp": token_fingerprint(token), "outcome": "store_error"},
            )
            raise StoreUnavailableError() from exc

    def rotate(
        self,
        *,
        old_token: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> bool:
        try:
            with self._rw() as uow:
                if not uow.refresh_tokens.revoke_if_active(
                    old_token, now=now, replaced_by=replacement.token
                ):
                    return False
                uow.refresh_tokens.add(_to_row(replacement))
                return True
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            log.error(
                "Refresh token rotation failed",
                extra={"token_fp": token_fingerprint(old_token), "outcome": "store_error"},
            )
            raise StoreUnavailableError() from exc
