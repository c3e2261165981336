"""Reverse-proxy awareness for client addresses."""

from __future__ import annotations

from flask import Flask, has_request_context, request
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`ProxyFix` unless ``USE_PROXYFIX`` is false.

    One hop of ``X-Forwarded-*`` headers is trusted.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)


def client_ip() -> str | None:
    """Return the caller address as seen after proxy resolution."""
    if not has_request_context():
        return None
    return request.remote_addr
