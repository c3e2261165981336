"""Wire signing settings, the refresh-token store and the session core into Flask.

``init_app`` runs inside the application factory and fails fast: a missing or
short signing key, a missing issuer/audience, or an unknown store backend
raises :class:`~taskhub.services._shared.errors.ConfigurationError` before the
app serves a single request.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, current_app
from flask_jwt_extended import get_jwt_identity

from taskhub.core.errors import unauthorized_response
from taskhub.core.extensions import get_redis, jwt
from taskhub.core.proxy import client_ip
from taskhub.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from taskhub.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from taskhub.infra.sqlalchemy.user_lookup import SQLAlchemyUserLookup
from taskhub.services._shared.base import ServiceContext
from taskhub.services._shared.errors import ConfigurationError
from taskhub.services._shared.ports.refresh_token_store import RefreshTokenStore
from taskhub.services.auth.service import AuthService
from taskhub.services.auth.sessions import SessionManager
from taskhub.services.auth.settings import RefreshTokenPolicy, SigningKeySettings
from taskhub.services.auth.tokens import TokenIssuer

log = logging.getLogger(__name__)

EXTENSION_KEY = "taskhub.sessions"
STORE_BACKENDS = ("database", "redis")


def build_store(app: Flask) -> RefreshTokenStore:
    """Select the refresh-token backend named by ``REFRESH_TOKEN_STORE``."""
    backend = (app.config.get("REFRESH_TOKEN_STORE") or "database").lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(
            f"REFRESH_TOKEN_STORE must be one of {STORE_BACKENDS}, got {backend!r}."
        )
    if backend == "redis":
        if not app.config.get("REDIS_URL"):
            raise ConfigurationError("REFRESH_TOKEN_STORE=redis requires REDIS_URL.")
        return RedisRefreshTokenStore(get_redis())
    return SQLAlchemyRefreshTokenStore()


def init_app(app: Flask, *, store: RefreshTokenStore | None = None) -> None:
    """
    Build the session core once and expose it through ``app.extensions``.

    :param app: Application being created.
    :param store: Optional store override (tests inject in-memory/fake stores).
    :raises ConfigurationError: On unusable signing or policy settings.
    """
    settings = SigningKeySettings.from_mapping(app.config)
    policy = RefreshTokenPolicy.from_mapping(app.config)

    # flask-jwt-extended verifies what TokenIssuer signs
    app.config["JWT_SECRET_KEY"] = settings.key
    app.config["JWT_ALGORITHM"] = settings.algorithm
    app.config["JWT_DECODE_ALGORITHMS"] = [settings.algorithm]
    app.config["JWT_DECODE_ISSUER"] = settings.issuer
    app.config["JWT_DECODE_AUDIENCE"] = settings.audience
    app.config["JWT_IDENTITY_CLAIM"] = "sub"
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config.setdefault("JWT_DECODE_LEEWAY", 0)

    manager = SessionManager(
        store=store if store is not None else build_store(app),
        users=SQLAlchemyUserLookup(),
        issuer=TokenIssuer(settings),
        policy=policy,
    )
    app.extensions[EXTENSION_KEY] = manager
    _register_jwt_callbacks()

    log.info(
        "Session core ready",
        extra={"outcome": type(manager.store).__name__},
    )


def _register_jwt_callbacks() -> None:
    @jwt.unauthorized_loader
    def _missing_token(reason: str):
        return unauthorized_response("Missing or malformed bearer token.")

    @jwt.invalid_token_loader
    def _invalid_token(reason: str):
        return unauthorized_response("Invalid access token.")

    @jwt.expired_token_loader
    def _expired_token(jwt_header: dict[str, Any], jwt_payload: dict[str, Any]):
        return unauthorized_response("Access token expired.")


def get_session_manager() -> SessionManager:
    """Return the :class:`SessionManager` bound to the current app."""
    manager = current_app.extensions.get(EXTENSION_KEY)
    if manager is None:
        raise RuntimeError("Session core is not initialized. Call security.init_app().")
    return manager


def current_user_id() -> int | None:
    """Return the authenticated user's id from a verified access token."""
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def service_context(actor_id: int | None = None) -> ServiceContext:
    from taskhub.core.logger import ensure_request_id

    return ServiceContext(actor_id=actor_id, request_id=ensure_request_id(), client_ip=client_ip())


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` for the current request."""
    return AuthService(sessions=get_session_manager(), ctx=service_context())
