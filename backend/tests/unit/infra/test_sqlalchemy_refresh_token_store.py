"""Relational refresh-token store against a real (file-backed) SQLite database.

These tests bypass the SAVEPOINT fixture on purpose: rotation commits and
rolls back real transactions, and the race test needs two independent
connections that see each other's commits.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from taskhub.core.clock import utc_now
from taskhub.core.extensions import db
from taskhub.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from taskhub.models.user import User
from taskhub.services._shared.errors import StoreUnavailableError
from taskhub.services._shared.ports.refresh_token_store import (
    RefreshTokenRecord,
    RefreshTokenState,
    generate_refresh_token,
)


@pytest.fixture()
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'tokens.db'}", future=True)
    db.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture()
def user_id(engine):
    with Session(engine) as s:
        user = User(username="dora", email="dora@example.com", password="Passw0rd")
        s.add(user)
        s.commit()
        return user.id


@pytest.fixture()
def sql_session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def store(sql_session):
    return SQLAlchemyRefreshTokenStore(session=sql_session)


def _record(user_id, now, *, token=None, days=60):
    return RefreshTokenRecord(
        token=token or generate_refresh_token(),
        user_id=user_id,
        created_at=now,
        expires_at=now + timedelta(days=days),
    )


def test_create_and_find(store, user_id):
    now = utc_now()
    record = _record(user_id, now)
    store.create(record)

    found = store.find_by_token(record.token)
    assert found.user_id == user_id
    assert found.expires_at == record.expires_at
    assert found.expires_at.tzinfo is not None
    assert found.state(now) is RefreshTokenState.ACTIVE


def test_find_unknown_is_none(store, user_id):
    assert store.find_by_token("missing") is None


def test_duplicate_create_is_an_integrity_error(store, user_id):
    record = _record(user_id, utc_now())
    store.create(record)
    with pytest.raises(IntegrityError):
        store.create(record)


def test_rotate_swaps_once(store, user_id):
    now = utc_now()
    old = _record(user_id, now)
    store.create(old)

    first = _record(user_id, now)
    second = _record(user_id, now)
    assert store.rotate(old_token=old.token, replacement=first, now=now) is True
    assert store.rotate(old_token=old.token, replacement=second, now=now) is False

    stored = store.find_by_token(old.token)
    assert stored.replaced_by == first.token
    assert stored.revoked_at is not None
    assert store.find_by_token(first.token) is not None
    assert store.find_by_token(second.token) is None


def test_rotate_refuses_expired_token(store, user_id):
    now = utc_now()
    old = _record(user_id, now - timedelta(days=61))
    store.create(old)

    assert store.rotate(old_token=old.token, replacement=_record(user_id, now), now=now) is False
    assert store.find_by_token(old.token).revoked_at is None


def test_failed_insert_leaves_old_token_active(store, user_id):
    now = utc_now()
    old = _record(user_id, now)
    taken = _record(user_id, now)
    store.create(old)
    store.create(taken)

    clash = _record(user_id, now, token=taken.token)
    with pytest.raises(IntegrityError):
        store.rotate(old_token=old.token, replacement=clash, now=now)

    assert store.find_by_token(old.token).state(now) is RefreshTokenState.ACTIVE


def test_revoke_is_conditional(store, user_id):
    now = utc_now()
    record = _record(user_id, now)
    store.create(record)

    assert store.revoke(record.token, now=now) is True
    assert store.revoke(record.token, now=now + timedelta(minutes=1)) is False
    assert store.revoke("unknown", now=now) is False
    assert store.find_by_token(record.token).revoked_at == now


def test_stale_reader_loses_the_race(engine, user_id):
    """Two sessions read the same active token; only the first swap wins."""
    now = utc_now()
    with Session(engine) as s1, Session(engine) as s2:
        a = SQLAlchemyRefreshTokenStore(session=s1)
        b = SQLAlchemyRefreshTokenStore(session=s2)
        old = _record(user_id, now)
        a.create(old)

        assert a.find_by_token(old.token).is_active(now)
        assert b.find_by_token(old.token).is_active(now)

        assert b.rotate(old_token=old.token, replacement=_record(user_id, now), now=now) is True
        assert a.rotate(old_token=old.token, replacement=_record(user_id, now), now=now) is False


def test_driver_errors_become_store_unavailable(store, user_id, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(store._session, "execute", boom)

    with pytest.raises(StoreUnavailableError) as err:
        store.find_by_token("any")
    assert isinstance(err.value.__cause__, OperationalError)

    with pytest.raises(StoreUnavailableError):
        store.revoke("any", now=utc_now())
