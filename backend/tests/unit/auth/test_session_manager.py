"""Unit tests for :class:`taskhub.services.auth.sessions.SessionManager`.

Everything runs against the in-memory store and user lookup with a fake clock,
so no Flask app or database is involved.
"""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from taskhub.services._shared.errors import (
    INVALID_REFRESH_TOKEN_MESSAGE,
    InvalidRefreshTokenError,
    StoreUnavailableError,
)
from taskhub.services._shared.ports.refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenState,
)
from taskhub.services._shared.ports.user_lookup import InMemoryUserLookup, UserView
from taskhub.services.auth.sessions import SessionManager
from taskhub.services.auth.settings import RefreshTokenPolicy, SigningKeySettings
from taskhub.services.auth.tokens import TokenIssuer
from tests.helpers.utils import FakeClock

KEY = "k" * 32
ALICE = UserView(id=1, username="alice", email="alice@example.com")
BOB = UserView(id=2, username="bob", email="bob@example.com")


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def users():
    return InMemoryUserLookup([ALICE, BOB])


@pytest.fixture()
def manager(store, users, clock):
    settings = SigningKeySettings(key=KEY, issuer="taskhub", audience="taskhub-clients")
    return SessionManager(
        store=store,
        users=users,
        issuer=TokenIssuer(settings, clock=clock),
        policy=RefreshTokenPolicy(lifespan=timedelta(days=60)),
        clock=clock,
    )


class TestIssueSession:
    def test_issue_persists_one_active_token(self, manager, store, clock):
        out = manager.issue_session(ALICE)

        assert len(store) == 1
        record = store.find_by_token(out.refresh_token)
        assert record.user_id == ALICE.id
        assert record.created_at == clock.now
        assert record.expires_at == clock.now + timedelta(days=60)
        assert record.state(clock.now) is RefreshTokenState.ACTIVE
        assert out.refresh_expires_at == record.expires_at
        assert out.user == ALICE

    def test_access_token_carries_identity(self, manager, clock):
        out = manager.issue_session(ALICE)

        claims = manager.issuer.decode(out.access_token)
        assert claims["sub"] == "1"
        assert claims["name"] == "alice"
        assert out.access_expires_at == clock.now.replace(microsecond=0) + timedelta(minutes=30)

    def test_sessions_are_independent(self, manager):
        first = manager.issue_session(ALICE)
        second = manager.issue_session(ALICE)

        assert first.refresh_token != second.refresh_token
        manager.revoke(first.refresh_token)

        assert manager.validate(first.refresh_token) is None
        assert manager.validate(second.refresh_token) == ALICE


class TestValidate:
    def test_active_token_returns_owner(self, manager):
        out = manager.issue_session(BOB)
        assert manager.validate(out.refresh_token) == BOB

    @pytest.mark.parametrize("token", [None, "", "does-not-exist"])
    def test_unknown_or_empty_is_none(self, manager, token):
        assert manager.validate(token) is None

    def test_expiry_boundary_is_exclusive(self, manager, clock):
        out = manager.issue_session(ALICE)

        clock.set(out.refresh_expires_at - timedelta(microseconds=1))
        assert manager.validate(out.refresh_token) == ALICE

        clock.set(out.refresh_expires_at)
        assert manager.validate(out.refresh_token) is None

    def test_validate_never_mutates(self, manager, store, clock):
        out = manager.issue_session(ALICE)
        before = store.find_by_token(out.refresh_token)

        clock.advance(days=61)
        assert manager.validate(out.refresh_token) is None

        assert store.find_by_token(out.refresh_token) == before
        assert len(store) == 1

    def test_missing_owner_is_none(self, manager, users):
        out = manager.issue_session(ALICE)
        users.remove(ALICE.id)
        assert manager.validate(out.refresh_token) is None


class TestRotate:
    def test_rotate_revokes_and_links_replacement(self, manager, store, clock):
        first = manager.issue_session(ALICE)
        clock.advance(minutes=5)

        second = manager.rotate(first.refresh_token)

        old = store.find_by_token(first.refresh_token)
        assert old.revoked_at == clock.now
        assert old.replaced_by == second.refresh_token
        new = store.find_by_token(second.refresh_token)
        assert new.state(clock.now) is RefreshTokenState.ACTIVE
        assert new.expires_at == clock.now + timedelta(days=60)
        assert second.user == ALICE
        assert len(store) == 2

    def test_rotated_token_is_single_use(self, manager):
        first = manager.issue_session(ALICE)
        second = manager.rotate(first.refresh_token)

        with pytest.raises(InvalidRefreshTokenError) as err:
            manager.rotate(first.refresh_token)
        assert str(err.value) == INVALID_REFRESH_TOKEN_MESSAGE

        # The successor is unaffected by the replay attempt.
        assert manager.validate(second.refresh_token) == ALICE

    def test_revoked_token_cannot_be_resurrected(self, manager, store):
        out = manager.issue_session(ALICE)
        manager.revoke(out.refresh_token)

        with pytest.raises(InvalidRefreshTokenError):
            manager.rotate(out.refresh_token)
        assert len(store) == 1

    def test_expired_token_is_rejected(self, manager, store, clock):
        out = manager.issue_session(ALICE)
        clock.set(out.refresh_expires_at)

        with pytest.raises(InvalidRefreshTokenError):
            manager.rotate(out.refresh_token)
        assert store.find_by_token(out.refresh_token).revoked_at is None
        assert len(store) == 1

    @pytest.mark.parametrize("token", [None, "", "nope"])
    def test_unknown_token_is_rejected(self, manager, token):
        with pytest.raises(InvalidRefreshTokenError):
            manager.rotate(token)

    def test_missing_owner_is_rejected_without_writes(self, manager, store, users):
        out = manager.issue_session(BOB)
        users.remove(BOB.id)

        with pytest.raises(InvalidRefreshTokenError):
            manager.rotate(out.refresh_token)
        assert store.find_by_token(out.refresh_token).revoked_at is None
        assert len(store) == 1

    def test_concurrent_rotations_have_one_winner(self, manager, store):
        out = manager.issue_session(ALICE)
        workers = 8
        barrier = threading.Barrier(workers)
        winners, losers = [], []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            try:
                result = manager.rotate(out.refresh_token)
            except InvalidRefreshTokenError:
                with lock:
                    losers.append(1)
            else:
                with lock:
                    winners.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(winners) == 1
        assert len(losers) == workers - 1
        assert len(store) == 2
        assert store.find_by_token(out.refresh_token).replaced_by == winners[0].refresh_token

    def test_store_failure_propagates(self, manager, monkeypatch):
        out = manager.issue_session(ALICE)

        def boom(*args, **kwargs):
            raise StoreUnavailableError()

        monkeypatch.setattr(manager.store, "rotate", boom)
        with pytest.raises(StoreUnavailableError):
            manager.rotate(out.refresh_token)


class TestRevoke:
    def test_revoke_is_idempotent(self, manager, store, clock):
        out = manager.issue_session(ALICE)

        manager.revoke(out.refresh_token)
        first_revoked_at = store.find_by_token(out.refresh_token).revoked_at
        clock.advance(minutes=1)
        manager.revoke(out.refresh_token)

        assert store.find_by_token(out.refresh_token).revoked_at == first_revoked_at

    @pytest.mark.parametrize("token", [None, "", "unknown"])
    def test_unknown_token_is_noop(self, manager, store, token):
        manager.revoke(token)
        assert len(store) == 0

    def test_expired_token_can_still_be_revoked(self, manager, store, clock):
        out = manager.issue_session(ALICE)
        clock.advance(days=90)

        manager.revoke(out.refresh_token)
        assert store.find_by_token(out.refresh_token).state(clock.now) is RefreshTokenState.REVOKED


def test_login_rotate_logout_scenario(manager, clock):
    """Full lifecycle: login, refresh twice, logout, then every token is dead."""
    s1 = manager.issue_session(ALICE)
    clock.advance(minutes=20)
    s2 = manager.rotate(s1.refresh_token)
    clock.advance(minutes=20)
    s3 = manager.rotate(s2.refresh_token)

    manager.revoke(s3.refresh_token)

    for token in (s1.refresh_token, s2.refresh_token, s3.refresh_token):
        assert manager.validate(token) is None
        with pytest.raises(InvalidRefreshTokenError):
            manager.rotate(token)
