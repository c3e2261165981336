"""Service base class, request context and service-to-HTTP error mapping."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from taskhub.core.errors import (
    APIError,
    Conflict,
    Forbidden,
    NotFound,
    ServiceUnavailable,
    Unauthorized,
)
from taskhub.services._shared.errors import (
    AuthorizationError,
    ConflictError,
    InvalidAccessTokenError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
    ServiceError,
    StoreUnavailableError,
)
from taskhub.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

#: Checked in order; the first ``isinstance`` match builds the API error from ``str(exc)``.
HTTP_MAPPING: tuple[tuple[type[ServiceError], Callable[[str], APIError]], ...] = (
    (NotFoundError, NotFound),
    (ConflictError, Conflict),
    (AuthorizationError, Forbidden),
    (InvalidCredentialsError, lambda msg: Unauthorized(msg, code="invalid_credentials")),
    (InvalidRefreshTokenError, lambda msg: Unauthorized(msg, code="invalid_refresh_token")),
    (InvalidAccessTokenError, Unauthorized),
)


@dataclass(slots=True)
class ServiceContext:
    """Who is calling: authenticated user id, correlation id and remote address."""

    actor_id: int | None = None
    request_id: str | None = None
    client_ip: str | None = None


class BaseService:
    """
    Parent of the auth and task services.

    Each public method opens its own unit of work through :meth:`rw_uow` or
    :meth:`ro_uow`; no service touches ``db.session`` directly.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        self.ctx = ctx if ctx is not None else ServiceContext()

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork()

    @staticmethod
    def translate_exceptions(exc: Exception) -> Exception:
        """
        Return the :class:`~taskhub.core.errors.APIError` for a service error.

        Store outages become a bare 503 so driver details never reach the
        client. Unmapped service errors are 400; anything that is not a
        :class:`ServiceError` is returned untouched.
        """
        if isinstance(exc, StoreUnavailableError):
            return ServiceUnavailable()
        for kind, build in HTTP_MAPPING:
            if isinstance(exc, kind):
                return build(str(exc))
        if isinstance(exc, ServiceError):
            return APIError(str(exc))
        return exc

    def ensure_owner(self, actor_id: int | None, owner_id: int, *, msg: str | None = None) -> None:
        """:raises AuthorizationError: unless ``actor_id`` is ``owner_id``."""
        if actor_id is None or int(actor_id) != int(owner_id):
            raise AuthorizationError(msg or "You can only access your own tasks.")
