"""User lookup port: the read-only view of accounts the session core needs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

DEFAULT_ROLE = "User"


@dataclass(frozen=True, slots=True)
class UserView:
    """
    Immutable projection of a user.

    :ivar id: User primary key.
    :ivar username: Login name (``name`` claim).
    :ivar email: Contact email (``email`` claim).
    :ivar role: Authorization role (``role`` claim).
    """

    id: int
    username: str
    email: str
    role: str = DEFAULT_ROLE

    @classmethod
    def of(cls, user: Any) -> UserView:
        """Project any object exposing ``id``, ``username``, ``email`` and ``role``."""
        return cls(
            id=int(user.id),
            username=user.username,
            email=user.email,
            role=getattr(user, "role", None) or DEFAULT_ROLE,
        )


class UserLookup(Protocol):
    """Find users by identity; every method returns ``None`` when absent."""

    def by_id(self, user_id: int) -> UserView | None: ...

    def by_username(self, username: str) -> UserView | None: ...

    def by_email(self, email: str) -> UserView | None: ...


class InMemoryUserLookup:
    """Dictionary-backed :class:`UserLookup` for unit tests."""

    def __init__(self, users: list[UserView] | None = None) -> None:
        self._users: dict[int, UserView] = {}
        for user in users or []:
            self.add(user)

    def add(self, user: UserView) -> UserView:
        self._users[user.id] = user
        return user

    def remove(self, user_id: int) -> None:
        self._users.pop(user_id, None)

    def by_id(self, user_id: int) -> UserView | None:
        return self._users.get(user_id)

    def by_username(self, username: str) -> UserView | None:
        return next((u for u in self._users.values() if u.username == username), None)

    def by_email(self, email: str) -> UserView | None:
        email = email.strip().lower()
        return next((u for u in self._users.values() if u.email.lower() == email), None)
