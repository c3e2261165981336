from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from taskhub.core.clock import as_utc

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TaskCreateIn:
    """
    Input DTO for creating a task.

    :param title: Required title (1-100 chars).
    :type title: str
    :param description: Optional description.
    :type description: str | None
    :param due_date: Optional deadline, already checked to be in the future.
    :type due_date: datetime | None
    """

    title: str
    description: str | None = None
    due_date: datetime | None = None


@dataclass(frozen=True, slots=True)
class TaskUpdateIn:
    """
    Partial update: only the keys present in ``changes`` are applied.

    :param changes: Subset of ``title``, ``description``, ``due_date``, ``is_completed``.
    :type changes: dict[str, Any]
    """

    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TaskListIn:
    """
    Filters for the paged listing.

    :param page: 1-based page number.
    :param limit: Page size.
    :param is_completed: Optional completion filter.
    :param sort_by: ``"due_date"``, ``"created_at"`` or ``None`` for the default order.
    """

    page: int = 1
    limit: int = 10
    is_completed: bool | None = None
    sort_by: Literal["due_date", "created_at"] | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TaskOut:
    """Read model of a task returned to the API layer."""

    id: int
    title: str
    description: str | None
    due_date: datetime | None
    is_completed: bool
    user_id: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, task: Any) -> TaskOut:
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            due_date=as_utc(task.due_date) if task.due_date else None,
            is_completed=bool(task.is_completed),
            user_id=task.user_id,
            created_at=as_utc(task.created_at),
            updated_at=as_utc(task.updated_at),
        )
