"""
taskhub.services._shared.ports
==============================

Ports (hexagonal interfaces) the session core depends on.

Modules
-------
- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RefreshTokenRecord` and
    :class:`~.RefreshTokenState` plus an in-memory implementation.

- :mod:`user_lookup`:
    Defines :class:`~.UserLookup` and the :class:`~.UserView` value object.

Concrete adapters (SQLAlchemy, Redis) live under ``taskhub.infra``.
"""

from __future__ import annotations

from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenState,
    RefreshTokenStore,
    generate_refresh_token,
    token_fingerprint,
)
from .user_lookup import InMemoryUserLookup, UserLookup, UserView

__all__ = [
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "RefreshTokenState",
    "InMemoryRefreshTokenStore",
    "generate_refresh_token",
    "token_fingerprint",
    "UserLookup",
    "UserView",
    "InMemoryUserLookup",
]
