"""Task repository: owner-scoped listing and pagination."""

from __future__ import annotations

from typing import Any, Literal

from sqlalchemy import Select, select

from taskhub.models.task import Task
from taskhub.repositories.base import BaseRepository, Page

SortKey = Literal["due_date", "created_at"]


class TaskRepository(BaseRepository[Task]):
    """Persistence for :class:`Task`; every query is scoped to an owner."""

    model = Task

    def _updatable_fields(self) -> set[str]:
        return {"title", "description", "due_date", "is_completed"}

    def _owned(self, user_id: int) -> Select[Any]:
        return select(Task).where(Task.user_id == user_id)

    def _ordered(self, stmt: Select[Any], sort_by: SortKey | None) -> Select[Any]:
        if sort_by == "due_date":
            # NULL due dates last, then id as a deterministic tiebreaker
            return stmt.order_by(Task.due_date.is_(None), Task.due_date.asc(), Task.id.asc())
        if sort_by == "created_at":
            return stmt.order_by(Task.created_at.desc(), Task.id.desc())
        return stmt.order_by(Task.is_completed.asc(), Task.created_at.desc(), Task.id.desc())

    def list_for_user(self, user_id: int) -> list[Task]:
        """All tasks of ``user_id``: incomplete first, newest first within each group."""
        stmt = self._ordered(self._owned(user_id), None)
        return list(self.session.execute(stmt).scalars().all())

    def paginate_for_user(
        self,
        user_id: int,
        *,
        page: int,
        limit: int,
        is_completed: bool | None = None,
        sort_by: SortKey | None = None,
    ) -> Page[Task]:
        """
        Page through the tasks of ``user_id``.

        :param is_completed: Optional completion filter.
        :param sort_by: ``"due_date"`` (soonest first), ``"created_at"`` (newest
            first) or ``None`` (incomplete first, then newest).
        """
        stmt = self._owned(user_id)
        if is_completed is not None:
            stmt = stmt.where(Task.is_completed == is_completed)
        stmt = self._ordered(stmt, sort_by)
        return self.paginate(stmt, page=page, limit=limit)
