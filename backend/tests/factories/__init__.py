"""factory_boy base class persisting into the current test's session."""

from __future__ import annotations

import factory
from sqlalchemy.orm import Session

_current: Session | None = None


def bind_factories(session: Session | None) -> None:
    """Point every factory at ``session`` (``None`` unbinds)."""
    global _current
    _current = session


def current_session() -> Session:
    if _current is None:
        raise RuntimeError("Factories need the 'session' fixture; request it in the test.")
    return _current


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        sqlalchemy_session_factory = current_session
        sqlalchemy_session_persistence = "flush"
