"""User repository: account lookups and credential checks."""

from __future__ import annotations

from sqlalchemy import select

from taskhub.models.user import User
from taskhub.repositories.base import BaseRepository


def _norm_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """
    Persistence for :class:`User`.

    Usernames match exactly after trimming; emails match case-insensitively
    (they are stored lowercased by the model).
    """

    model = User

    def get_by_username(self, username: str) -> User | None:
        return self.first(select(User).where(User.username == username.strip()))

    def get_by_email(self, email: str) -> User | None:
        return self.first(select(User).where(User.email == _norm_email(email)))

    def exists_by_username(self, username: str) -> bool:
        return self.exists(select(User.id).where(User.username == username.strip()))

    def exists_by_email(self, email: str) -> bool:
        return self.exists(select(User.id).where(User.email == _norm_email(email)))

    def authenticate(self, username: str, password: str) -> User | None:
        """
        Return the user when ``password`` matches.

        :returns: ``None`` for an unknown username and for a wrong password alike.
        """
        user = self.get_by_username(username)
        return user if user is not None and user.verify_password(password) else None
