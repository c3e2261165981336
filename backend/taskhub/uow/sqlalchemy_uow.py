"""Units of work over the Flask-SQLAlchemy session."""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from taskhub.core.extensions import db
from taskhub.repositories import RefreshTokenRepository, TaskRepository, UserRepository
from taskhub.uow.base import UnitOfWork


class _SessionUnitOfWork(UnitOfWork):
    """Binds the three repositories to ``session`` (default: ``db.session``)."""

    def __init__(self, session: Session | None = None) -> None:
        self.session = db.session if session is None else session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)
        self.tasks = TaskRepository(session=self.session)

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyUnitOfWork(_SessionUnitOfWork):
    """
    Read-write unit: the block's changes are committed together or not at all.

    A failing commit is rolled back before the error propagates, so the
    session is reusable afterwards.
    """

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()


class SQLAlchemyReadOnlyUnitOfWork(_SessionUnitOfWork):
    """
    Read-only unit sharing the request's transaction.

    Entering it attaches a ``before_flush`` listener that rejects pending ORM
    changes; leaving it detaches the listener and leaves the transaction as
    it was.
    """

    _listening = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        event.listen(self._event_target(), "before_flush", self._refuse_writes)
        self._listening = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._listening:
            event.remove(self._event_target(), "before_flush", self._refuse_writes)
            self._listening = False

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def _event_target(self) -> Session:
        # Events attach to the Session itself, not to the scoped_session proxy.
        registry = getattr(self.session, "registry", None)
        return self.session if registry is None else registry()

    @staticmethod
    def _refuse_writes(session, flush_context, instances) -> None:
        pending = len(session.new) + len(session.dirty) + len(session.deleted)
        if pending:
            raise RuntimeError(f"Read-only UnitOfWork: flush blocked ({pending} pending changes).")
