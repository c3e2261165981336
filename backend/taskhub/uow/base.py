"""Transaction boundary shared by services and refresh-token stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskhub.repositories import RefreshTokenRepository, TaskRepository, UserRepository


class UnitOfWork(ABC):
    """
    One use case, one transaction.

    Implementations bind every repository below to the same session, so a
    refresh-token rotation (conditional revoke + insert) or a task update is
    committed or discarded as a whole.

    :ivar users: Account repository.
    :ivar refresh_tokens: Refresh-token repository.
    :ivar tasks: Task repository.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository
    tasks: TaskRepository

    def __enter__(self) -> UnitOfWork:
        return self

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        """Finish the transaction according to how the block ended."""

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
