"""Startup wiring: signing-key checks and refresh-token store selection."""

from __future__ import annotations

import fakeredis
import pytest
import redis

from taskhub.core import extensions
from taskhub.core.config import TestingConfig
from taskhub.core.security import EXTENSION_KEY
from taskhub.factory import create_app
from taskhub.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from taskhub.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from taskhub.services._shared.errors import ConfigurationError
from taskhub.services._shared.ports.refresh_token_store import InMemoryRefreshTokenStore


class QuietConfig(TestingConfig):
    LOG_LEVEL = "WARNING"


@pytest.fixture(autouse=True)
def _restore_redis_client(monkeypatch):
    # Apps built here must not leave a Redis client behind for other tests.
    monkeypatch.setattr(extensions, "redis_client", None)


def _config(**overrides):
    return type("Cfg", (QuietConfig,), overrides)


@pytest.mark.parametrize(
    "overrides",
    [
        {"JWT_SECRET_KEY": ""},
        {"JWT_SECRET_KEY": "too-short"},
        {"JWT_ISSUER": ""},
        {"JWT_AUDIENCE": ""},
        {"REFRESH_TOKEN_DAYS": 0},
        {"REFRESH_TOKEN_STORE": "memcached"},
        {"REFRESH_TOKEN_STORE": "redis", "REDIS_URL": None},
    ],
)
def test_bad_settings_fail_fast(overrides):
    with pytest.raises(ConfigurationError):
        create_app(_config(**overrides))


def test_database_store_is_the_default():
    app = create_app(QuietConfig)
    assert isinstance(app.extensions[EXTENSION_KEY].store, SQLAlchemyRefreshTokenStore)


def test_store_can_be_injected():
    store = InMemoryRefreshTokenStore()
    assert len(store) == 0  # an empty store is falsy but must still be used
    app = create_app(QuietConfig, refresh_token_store=store)
    assert app.extensions[EXTENSION_KEY].store is store


def test_redis_backend(monkeypatch):
    fake = fakeredis.FakeRedis()
    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, url, **kw: fake))

    app = create_app(_config(REFRESH_TOKEN_STORE="redis", REDIS_URL="redis://cache:6379/0"))

    store = app.extensions[EXTENSION_KEY].store
    assert isinstance(store, RedisRefreshTokenStore)
    assert store.r is fake


def test_jwt_settings_are_shared_with_flask_jwt_extended():
    app = create_app(QuietConfig)
    assert app.config["JWT_DECODE_ISSUER"] == QuietConfig.JWT_ISSUER
    assert app.config["JWT_DECODE_AUDIENCE"] == QuietConfig.JWT_AUDIENCE
    assert app.config["JWT_DECODE_ALGORITHMS"] == ["HS256"]
