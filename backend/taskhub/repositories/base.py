"""Repository base class: persistence helpers with no transaction control.

Repositories stage, query and flush. Committing and rolling back belong to
the unit of work (:mod:`taskhub.uow`), which is what lets a refresh-token
rotation span two repository calls and still be atomic.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from taskhub.core.extensions import db

E = TypeVar("E")


@dataclass(slots=True)
class Page(Generic[E]):
    """
    One page of query results.

    :param items: Rows on this page.
    :param total: Row count of the unpaged query.
    :param page: 1-based page number actually served.
    :param limit: Page size actually served.
    """

    items: Sequence[E]
    total: int
    page: int
    limit: int


class BaseRepository(Generic[E]):
    """
    CRUD helpers for a single mapped ``model``.

    Subclasses set ``model`` and may override :meth:`_updatable_fields` to
    opt fields into :meth:`assign_updates`.

    :param session: Explicit session; ``None`` means the Flask-scoped ``db.session``.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session if self._session is not None else cast(Session, db.session)

    def _updatable_fields(self) -> set[str]:
        return set()

    # ---------------------------------------------------------------- writes

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush, so constraint errors surface here and ``id`` is set."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.session.flush()

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: E, fields: Mapping[str, Any], *, flush: bool = True) -> E:
        """
        Copy whitelisted ``fields`` onto ``instance`` through ``setattr``.

        Model ``@validates`` hooks therefore still run.

        :raises ValueError: When ``fields`` names anything outside the whitelist.
        """
        rejected = sorted(set(fields) - self._updatable_fields())
        if rejected:
            raise ValueError(f"Unknown or non-updatable fields: {rejected}")
        for name, value in fields.items():
            setattr(instance, name, value)
        if flush:
            self.session.flush()
        return instance

    # ----------------------------------------------------------------- reads

    def get(self, entity_id: Any) -> E | None:
        """Primary-key lookup (hits the identity map first)."""
        return self.session.get(self.model, entity_id)

    def first(self, stmt: Select[Any]) -> E | None:
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, stmt: Select[Any]) -> bool:
        return self.session.execute(stmt.limit(1)).first() is not None

    def paginate(self, stmt: Select[Any], *, page: int, limit: int) -> Page[E]:
        """
        Run ``stmt`` one page at a time.

        ``stmt`` must already be ordered (with a unique tiebreaker) for stable
        pages; the ``ORDER BY`` is dropped for the count query. ``page`` and
        ``limit`` are clamped to at least 1.
        """
        page, limit = max(int(page), 1), max(int(limit), 1)
        count = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = int(self.session.execute(count).scalar_one())
        rows = self.session.execute(stmt.limit(limit).offset((page - 1) * limit)).scalars()
        return Page(items=list(rows), total=total, page=page, limit=limit)
