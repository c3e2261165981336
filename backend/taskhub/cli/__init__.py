"""``flask`` sub-commands shipped with TaskHub."""

from __future__ import annotations

from flask import Flask

from .tokens import tokens_cli


def init_app(app: Flask) -> None:
    """Expose ``flask tokens ...`` (refresh-token housekeeping)."""

    app.cli.add_command(tokens_cli)
