"""HTTP surface: mounts each API version's blueprints on the app."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def _join(*parts: str) -> str:
    return "/" + "/".join(p.strip("/") for p in parts if p.strip("/"))


def mount(app: Flask, prefix: str, routes: Iterable[tuple[Blueprint, str]]) -> None:
    """Register ``(blueprint, subpath)`` pairs under ``prefix``.

    An empty subpath mounts the blueprint at ``prefix`` itself.
    """

    for blueprint, subpath in routes:
        app.register_blueprint(blueprint, url_prefix=_join(prefix, subpath))


def init_app(app: Flask) -> None:
    from taskhub.api import v1

    root = app.config.get("API_BASE_PREFIX", "/api")
    mount(app, _join(root, v1.API_VERSION), v1.ROUTES)


__all__ = ["init_app", "mount"]
