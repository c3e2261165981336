"""Immutable signing and refresh-token settings, built once at startup."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from taskhub.services._shared.errors import ConfigurationError

#: HS256 needs a key of at least 256 bits.
MIN_KEY_BYTES = 32
ALGORITHM = "HS256"

DEFAULT_ACCESS_TOKEN_MINUTES = 30
DEFAULT_REFRESH_TOKEN_DAYS = 60


def _positive_int(config: Mapping[str, Any], key: str, default: int) -> int:
    raw = config.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}.") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}.")
    return value


@dataclass(frozen=True, slots=True)
class SigningKeySettings:
    """
    Access-token signing material and metadata.

    :param key: Symmetric HMAC key (UTF-8 text, at least 32 bytes).
    :type key: str
    :param issuer: Value of the ``iss`` claim.
    :type issuer: str
    :param audience: Value of the ``aud`` claim.
    :type audience: str
    :param access_token_lifetime: Validity window of access tokens.
    :type access_token_lifetime: timedelta
    :param algorithm: JWS algorithm (always ``HS256``).
    :type algorithm: str
    """

    key: str
    issuer: str
    audience: str
    access_token_lifetime: timedelta = timedelta(minutes=DEFAULT_ACCESS_TOKEN_MINUTES)
    algorithm: str = ALGORITHM

    def __post_init__(self) -> None:
        if not self.key:
            raise ConfigurationError("JWT_SECRET_KEY is not configured.")
        if len(self.key.encode("utf-8")) < MIN_KEY_BYTES:
            raise ConfigurationError(
                f"JWT_SECRET_KEY must be at least {MIN_KEY_BYTES} bytes (256 bits) for HS256."
            )
        if not self.issuer:
            raise ConfigurationError("JWT_ISSUER is not configured.")
        if not self.audience:
            raise ConfigurationError("JWT_AUDIENCE is not configured.")
        if self.access_token_lifetime <= timedelta(0):
            raise ConfigurationError("Access token lifetime must be positive.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SigningKeySettings:
        """
        Build settings from a Flask config (or any mapping).

        :raises ConfigurationError: On a missing/short key or missing issuer/audience.
        """
        minutes = _positive_int(config, "ACCESS_TOKEN_MINUTES", DEFAULT_ACCESS_TOKEN_MINUTES)
        return cls(
            key=config.get("JWT_SECRET_KEY") or "",
            issuer=config.get("JWT_ISSUER") or "",
            audience=config.get("JWT_AUDIENCE") or "",
            access_token_lifetime=timedelta(minutes=minutes),
        )


@dataclass(frozen=True, slots=True)
class RefreshTokenPolicy:
    """
    Refresh-token lifetime policy.

    :param lifespan: Time from issuance to absolute expiry.
    :type lifespan: timedelta
    """

    lifespan: timedelta = timedelta(days=DEFAULT_REFRESH_TOKEN_DAYS)

    def __post_init__(self) -> None:
        if self.lifespan <= timedelta(0):
            raise ConfigurationError("Refresh token lifespan must be positive.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> RefreshTokenPolicy:
        days = _positive_int(config, "REFRESH_TOKEN_DAYS", DEFAULT_REFRESH_TOKEN_DAYS)
        return cls(lifespan=timedelta(days=days))
