"""
Exceptions raised below the HTTP layer.

Stores, repositories and services raise these; none of them know about
Flask. :meth:`taskhub.services._shared.base.BaseService.translate_exceptions`
turns them into problem responses.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

#: Shared by every refresh failure: unknown, expired, revoked, reused or orphaned.
INVALID_REFRESH_TOKEN_MESSAGE = "Invalid or expired refresh token."


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """True when the driver message of ``exc`` names ``constraint_name``."""
    return exc.orig is not None and constraint_name.lower() in str(exc.orig).lower()


class ServiceError(Exception):
    """Root of the service-layer hierarchy; ``default_message`` fills in a blank message."""

    default_message = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class ConfigurationError(ServiceError):
    """Unusable token settings. Raised during app creation and never rendered as HTTP."""


class InvalidCredentialsError(ServiceError):
    default_message = "Invalid username or password."


class InvalidRefreshTokenError(ServiceError):
    """A refresh token that cannot be used, whatever the reason."""

    default_message = INVALID_REFRESH_TOKEN_MESSAGE

    def __init__(self) -> None:
        super().__init__()


class InvalidAccessTokenError(ServiceError):
    default_message = "Invalid or expired access token."


class StoreUnavailableError(ServiceError):
    """The refresh-token backend failed; the driver error is chained as ``__cause__``."""

    default_message = "Token store unavailable."


class AuthorizationError(ServiceError):
    default_message = "You do not have access to this resource."


class NotFoundError(ServiceError):
    """``entity`` has no row for ``key``."""

    def __init__(self, entity: str, key: str | int) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConflictError(ServiceError):
    """A uniqueness rule on ``entity`` would be broken."""

    def __init__(self, entity: str, detail: str) -> None:
        self.entity = entity
        self.detail = detail
        super().__init__(f"Conflict on {entity}: {detail}")
