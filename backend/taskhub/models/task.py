"""Task model owned by a single user."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from taskhub.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from .user import User

TITLE_MAX = 100
DESCRIPTION_MAX = 1000


class Task(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """A to-do item.

    Fields
    ------
    title : str
        Required, at most 100 characters.
    description : str | None
        Optional free text, at most 1000 characters.
    due_date : datetime | None
        Optional deadline (UTC).
    is_completed : bool
        Completion flag.
    user_id : int
        Owner; tasks are only visible to their owner.
    """

    __tablename__ = "tasks"
    __repr_attrs__ = ("title", "is_completed")

    title: Mapped[str] = mapped_column(String(TITLE_MAX), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    is_completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    user: Mapped[User] = relationship(back_populates="tasks")

    @validates("title")
    def _validate_title(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Title is required.")
        v = value.strip()
        if len(v) > TITLE_MAX:
            raise ValueError(f"Title must be at most {TITLE_MAX} characters.")
        return v

    @validates("description")
    def _validate_description(self, key: str, value: str | None) -> str | None:
        if value is not None and len(value) > DESCRIPTION_MAX:
            raise ValueError(f"Description must be at most {DESCRIPTION_MAX} characters.")
        return value
