"""Process-wide Flask extension singletons and their initialization."""

from __future__ import annotations

import redis
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError
from sqlalchemy import MetaData

# Deterministic constraint names so Alembic autogenerate stays stable
metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_name)s",
        "uq": "uq_%(table_name)s_%(column_0_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
redis_client: redis.Redis | None = None


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy, Alembic, bearer-token verification and (optionally) Redis.

    Importing :mod:`taskhub.models` here registers every table on ``metadata``
    before Flask-Migrate inspects it.
    """
    db.init_app(app)

    from taskhub import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)
    _init_redis(app)


def _init_redis(app: Flask) -> None:
    """Connect to ``REDIS_URL`` when set; an unreachable server aborts startup."""
    global redis_client
    url = app.config.get("REDIS_URL")
    if not url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    client = redis.Redis.from_url(url, socket_timeout=app.config.get("REDIS_TIMEOUT", 2.0))
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    redis_client = client
    app.extensions["redis_client"] = client


def get_redis() -> redis.Redis:
    """Return the connected Redis client.

    :raises RuntimeError: If ``REDIS_URL`` was not configured.
    """
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Set REDIS_URL and call init_app().")
    return redis_client


def redis_status() -> str | None:
    """``"ok"``/``"fail"`` for a configured Redis, ``None`` when Redis is not in use."""
    if redis_client is None:
        return None
    try:
        redis_client.ping()
    except RedisError:
        return "fail"
    return "ok"
