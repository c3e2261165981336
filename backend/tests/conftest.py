"""Shared fixtures: one app per run, one rolled-back transaction per test."""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from taskhub.core.config import TestingConfig
from taskhub.core.extensions import db as flask_db
from taskhub.core.security import get_session_manager
from taskhub.factory import create_app
from taskhub.services._shared.ports.user_lookup import UserView
from tests.factories import bind_factories


class TestConfig(TestingConfig):
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    os.environ.pop("DATABASE_URL", None)
    return create_app(TestConfig)


@pytest.fixture(scope="session")
def db(app):
    """Schema created once; the app context stays pushed for the whole run."""
    with app.app_context():
        flask_db.create_all()
        yield flask_db
        flask_db.session.remove()
        flask_db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    with db.engine.connect() as conn:
        yield conn


@pytest.fixture
def session(db, connection):
    """
    Per-test session bound to an outer transaction that is always rolled back.

    Application code may commit: commits end a SAVEPOINT, and a fresh one is
    opened straight away. ``db.session`` points at this session meanwhile,
    so units of work and stores see the same data as the test.
    """
    outer = connection.begin()
    connection.begin_nested()
    test_session = scoped_session(sessionmaker(bind=connection))

    @event.listens_for(test_session(), "after_transaction_end")
    def reopen_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            connection.begin_nested()

    app_session = db.session
    app_session.remove()
    db.session = test_session
    bind_factories(test_session)
    try:
        yield test_session
    finally:
        bind_factories(None)
        test_session.remove()
        db.session = app_session
        outer.rollback()


@pytest.fixture
def client(app, session):
    return app.test_client()


@pytest.fixture
def sessions(app, db):
    """The app's :class:`~taskhub.services.auth.sessions.SessionManager`."""
    return get_session_manager()


@pytest.fixture
def auth_headers(sessions):
    """``auth_headers(user)`` -> bearer header carrying a fresh access token."""

    def build(user) -> dict[str, str]:
        access = sessions.issuer.create_access_token(UserView.of(user))
        return {"Authorization": f"Bearer {access.token}"}

    return build
