"""
Access-token issuance and verification with PyJWT.

Tokens are compact HS256 JWS strings carrying the user's identity claims::

    {"sub": "42", "name": "alice", "email": "alice@example.com", "role": "User",
     "iss": ..., "aud": ..., "iat": ..., "nbf": ..., "exp": ..., "jti": ...}

Request authentication uses flask-jwt-extended configured with the same key,
issuer and audience, so anything :class:`TokenIssuer` signs is accepted by
``@jwt_required()`` routes and vice versa.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

import jwt

from taskhub.core.clock import Clock, utc_now
from taskhub.services._shared.errors import InvalidAccessTokenError
from taskhub.services._shared.ports.user_lookup import DEFAULT_ROLE, UserView
from taskhub.services.auth.dto import AccessTokenOut
from taskhub.services.auth.settings import SigningKeySettings

log = logging.getLogger(__name__)


class TokenIssuer:
    """
    Sign short-lived access tokens.

    Output is a pure function of the user, the injected clock and the
    settings (plus a random ``jti``).
    """

    def __init__(self, settings: SigningKeySettings, *, clock: Clock = utc_now) -> None:
        self.settings = settings
        self.clock = clock

    def build_claims(self, user: UserView, *, now: datetime) -> dict[str, Any]:
        """Return the claim set for ``user`` issued at ``now``."""
        expires_at = now + self.settings.access_token_lifetime
        issued = int(now.timestamp())
        return {
            "sub": str(user.id),
            "name": user.username,
            "email": user.email,
            "role": user.role or DEFAULT_ROLE,
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "iat": issued,
            "nbf": issued,
            "exp": int(expires_at.timestamp()),
            "jti": uuid.uuid4().hex,
        }

    def create_access_token(self, user: UserView) -> AccessTokenOut:
        """
        Sign an access token for ``user``.

        :param user: Token subject.
        :returns: The compact token and its expiry (second precision, UTC).
        """
        claims = self.build_claims(user, now=self.clock())
        token = jwt.encode(claims, self.settings.key, algorithm=self.settings.algorithm)
        return AccessTokenOut(
            token=token,
            expires_at=datetime.fromtimestamp(claims["exp"], tz=UTC),
        )

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature, issuer, audience and expiry (no leeway).

        ``exp``, ``nbf`` and ``iat`` are checked against the injected clock,
        not the wall clock, so an issuer verifies exactly what it signed.

        :raises InvalidAccessTokenError: When any check fails.
        """
        try:
            claims = jwt.decode(
                token,
                self.settings.key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={
                    "require": ["exp", "iss", "aud", "sub"],
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            log.debug("Rejected access token: %s", exc)
            raise InvalidAccessTokenError() from exc

        times = [claims["exp"], claims.get("nbf", 0), claims.get("iat", 0)]
        if not all(isinstance(t, int | float) and not isinstance(t, bool) for t in times):
            raise InvalidAccessTokenError()
        now = self.clock().timestamp()
        if now >= claims["exp"]:
            raise InvalidAccessTokenError("Access token expired.")
        if claims.get("nbf", now) > now or claims.get("iat", now) > now:
            log.debug("Rejected access token: not yet valid")
            raise InvalidAccessTokenError()
        return claims
