"""Unit tests for RefreshTokenRepository."""

from __future__ import annotations

from datetime import timedelta

import pytest

from taskhub.core.clock import as_utc, utc_now
from taskhub.repositories.refresh_token import RefreshTokenRepository
from tests.factories.refresh_token import RefreshTokenFactory


class TestRefreshTokenRepository:
    """Conditional updates and housekeeping on ``refresh_tokens``."""

    @pytest.fixture()
    def repo(self, session):
        return RefreshTokenRepository(session=session)

    def test_get_by_token(self, repo, session):
        row = RefreshTokenFactory()
        session.commit()

        fetched = repo.get_by_token(row.token)
        assert fetched is not None
        assert fetched.user_id == row.user_id
        assert repo.get_by_token("missing") is None

    def test_revoke_if_active_hits_one_row_once(self, repo, session):
        row = RefreshTokenFactory()
        session.commit()
        now = utc_now()

        assert repo.revoke_if_active(row.token, now=now, replaced_by="next") is True
        assert repo.revoke_if_active(row.token, now=now) is False

        fresh = repo.get_by_token(row.token)
        assert fresh.revoked_at is not None
        assert fresh.replaced_by == "next"

    def test_revoke_if_active_skips_expired(self, repo, session):
        now = utc_now()
        row = RefreshTokenFactory(created_at=now - timedelta(days=61))
        session.commit()

        assert repo.revoke_if_active(row.token, now=now) is False
        assert repo.get_by_token(row.token).revoked_at is None

    def test_revoke_if_unrevoked_accepts_expired(self, repo, session):
        now = utc_now()
        row = RefreshTokenFactory(created_at=now - timedelta(days=61))
        session.commit()

        assert repo.revoke_if_unrevoked(row.token, now=now) is True
        assert repo.revoke_if_unrevoked(row.token, now=now) is False
        assert as_utc(repo.get_by_token(row.token).revoked_at) == now

    def test_purge_keeps_live_and_recent_rows(self, repo, session):
        now = utc_now()
        live = RefreshTokenFactory()
        long_expired = RefreshTokenFactory(created_at=now - timedelta(days=120))
        recently_revoked = RefreshTokenFactory(revoked_at=now - timedelta(days=2))
        long_revoked = RefreshTokenFactory(revoked_at=now - timedelta(days=45))
        session.commit()
        # Bulk DELETE leaves purged instances unloadable; keep plain strings.
        kept = [live.token, recently_revoked.token]
        purged = [long_expired.token, long_revoked.token]

        deleted = repo.purge(now=now, retention=timedelta(days=30))

        assert deleted == 2
        assert all(repo.get_by_token(token) is not None for token in kept)
        assert all(repo.get_by_token(token) is None for token in purged)
