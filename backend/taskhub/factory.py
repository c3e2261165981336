"""``create_app``: the only place the TaskHub application is assembled."""

from __future__ import annotations

from flask import Flask

from taskhub.core.config import BaseConfig, get_config
from taskhub.services._shared.ports.refresh_token_store import RefreshTokenStore


def create_app(
    config: type[BaseConfig] | object | None = None,
    *,
    refresh_token_store: RefreshTokenStore | None = None,
) -> Flask:
    """
    Build a configured application.

    :param config: Object handed to ``app.config.from_object``; defaults to
        the class selected by ``APP_ENV``. ``instance/config.py``, when
        present, is layered on top.
    :param refresh_token_store: Replaces the store named by
        ``REFRESH_TOKEN_STORE`` (tests, embedding).
    :raises ConfigurationError: Signing key or token lifetimes are unusable.
        Raised before any blueprint is registered.
    """
    from taskhub import cli
    from taskhub.api import init_app as init_api
    from taskhub.core import cors, errors, extensions, logger, proxy, security

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config if config is not None else get_config())
    app.config.from_pyfile("config.py", silent=True)

    logger.configure_logging(app.config["LOG_LEVEL"], app.config["LOG_FORMAT"])
    proxy.init_app(app)
    extensions.init_app(app)
    logger.init_app(app)
    security.init_app(app, store=refresh_token_store)
    cors.init_app(app)
    init_api(app)
    errors.init_app(app)
    cli.init_app(app)
    return app
