"""Configuration classes selected by ``APP_ENV``.

Every value can be overridden from the environment (or a ``.env`` file in
development). Refresh-token settings are read again, and validated, by
:func:`taskhub.core.security.init_app`; this module only supplies them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

APP_ENV: Final[str] = "APP_ENV"
TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})

load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in TRUTHY


def env_int(name: str, default: int) -> int:
    """Integer environment variable; unset or blank yields ``default``."""
    raw = (os.getenv(name) or "").strip()
    return int(raw) if raw else default


class BaseConfig:
    """
    Settings shared by every environment.

    Token settings:

    ``JWT_SECRET_KEY``
        HMAC-SHA256 signing key, 32 bytes or longer. No default: the app
        refuses to start without one.
    ``JWT_ISSUER`` / ``JWT_AUDIENCE``
        Written into, and demanded from, every access token.
    ``ACCESS_TOKEN_MINUTES`` / ``REFRESH_TOKEN_DAYS``
        Lifetimes of the two token kinds; set independently.
    ``REFRESH_TOKEN_STORE``
        ``"database"`` or ``"redis"``; the latter needs ``REDIS_URL``.
    """

    APP_NAME = "TaskHub"
    APP_DESCRIPTION = "Task management API with rotating refresh-token sessions"
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    API_BASE_PREFIX = "/api"

    DEBUG = False
    TESTING = False
    PROPAGATE_EXCEPTIONS = False
    JSON_SORT_KEYS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "taskhub")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "taskhub-clients")
    ACCESS_TOKEN_MINUTES = env_int("ACCESS_TOKEN_MINUTES", 30)
    REFRESH_TOKEN_DAYS = env_int("REFRESH_TOKEN_DAYS", 60)
    REFRESH_TOKEN_STORE = os.getenv("REFRESH_TOKEN_STORE", "database")
    REDIS_URL = os.getenv("REDIS_URL")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")


class DevelopmentConfig(BaseConfig):
    """Local runs. Ships a throwaway signing key so no ``.env`` is needed."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-only-signing-key-change-me-0123456789")
    CORS_MAX_AGE = 600


class TestingConfig(BaseConfig):
    """pytest: in-memory SQLite (or ``TEST_DATABASE_URL``), database token store."""

    TESTING = True
    PROPAGATE_EXCEPTIONS = True
    JWT_SECRET_KEY = "test-signing-key-with-at-least-32-bytes!!"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    REFRESH_TOKEN_STORE = "database"
    REDIS_URL = None


class ProductionConfig(BaseConfig):
    SQLALCHEMY_ECHO = False


CONFIGS: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Config class named by ``APP_ENV``; unknown or unset means development."""
    name = os.getenv(APP_ENV, "development").strip().lower()
    return CONFIGS.get(name, DevelopmentConfig)
