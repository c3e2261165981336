"""Relational :class:`~taskhub.services._shared.ports.UserLookup` adapter."""

from __future__ import annotations

from sqlalchemy.orm import Session

from taskhub.models.user import User
from taskhub.services._shared.ports.user_lookup import UserView
from taskhub.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork


def _view(user: User | None) -> UserView | None:
    return UserView.of(user) if user is not None else None


class SQLAlchemyUserLookup:
    """Read users through :class:`~taskhub.repositories.UserRepository`."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def by_id(self, user_id: int) -> UserView | None:
        with SQLAlchemyReadOnlyUnitOfWork(session=self._session) as uow:
            return _view(uow.users.get(user_id))

    def by_username(self, username: str) -> UserView | None:
        with SQLAlchemyReadOnlyUnitOfWork(session=self._session) as uow:
            return _view(uow.users.get_by_username(username))

    def by_email(self, email: str) -> UserView | None:
        with SQLAlchemyReadOnlyUnitOfWork(session=self._session) as uow:
            return _view(uow.users.get_by_email(email))
