"""Value objects shared by more than one service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageMeta:
    """
    Where a page sits inside a listing.

    Built from the repository's :class:`~taskhub.repositories.base.Page`
    through :meth:`build`, which derives the two navigation flags.
    """

    page: int
    limit: int
    total: int
    has_prev: bool
    has_next: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> PageMeta:
        served = page * limit
        return cls(page, limit, total, has_prev=page > 1, has_next=served < total)
