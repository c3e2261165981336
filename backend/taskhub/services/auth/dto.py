"""Request and result objects of the auth service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from taskhub.services._shared.ports.user_lookup import UserView


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """New account; ``password`` has already passed the schema's strength rules."""

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    username: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """Refresh token presented for rotation."""

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """Refresh token to revoke. Unknown or already revoked tokens are accepted."""

    refresh_token: str


@dataclass(frozen=True, slots=True)
class AccessTokenOut:
    """A signed access token; ``expires_at`` mirrors its ``exp`` claim (UTC)."""

    token: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Everything a client receives when a session starts or is renewed.

    :param access_token: Compact HS256 JWS.
    :param access_expires_at: UTC expiry of ``access_token``.
    :param refresh_token: Opaque single-use token for the next renewal.
    :param refresh_expires_at: UTC expiry of ``refresh_token``.
    :param user: Account the session belongs to.
    """

    access_token: str
    access_expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
    user: UserView
