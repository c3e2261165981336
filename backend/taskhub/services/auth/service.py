# taskhub/services/auth/service.py
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from taskhub.models.user import DEFAULT_ROLE, User
from taskhub.services._shared.base import BaseService, ServiceContext
from taskhub.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    violates,
)
from taskhub.services._shared.ports.user_lookup import UserView
from taskhub.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn, SessionOut
from taskhub.services.auth.sessions import SessionManager

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Account lifecycle service (register / login / refresh / logout).

    Password checks and account creation happen here; everything about
    tokens is delegated to :class:`SessionManager`.
    """

    def __init__(self, *, sessions: SessionManager, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the service with its dependencies.

        :param sessions: Session core (issue/rotate/revoke).
        :param ctx: Optional request context (client IP is used for audit logs).
        """
        super().__init__(ctx=ctx)
        self.sessions = sessions

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> SessionOut:
        """
        Create an account with the default role and sign it in.

        :raises ConflictError: If the username or email is taken.
        """
        with self.ro_uow() as uow:
            if uow.users.exists_by_username(dto.username):
                raise ConflictError("User", "Username is already taken.")
            if uow.users.exists_by_email(dto.email):
                raise ConflictError("User", "Email is already registered.")

        try:
            with self.rw_uow() as uow:
                user = User(username=dto.username, email=dto.email, role=DEFAULT_ROLE)
                user.password = dto.password
                uow.users.add(user)
                view = UserView.of(user)
        except IntegrityError as exc:
            # Lost a race against a concurrent registration
            if violates(exc, "uq_users_username") or violates(exc, "users.username"):
                raise ConflictError("User", "Username is already taken.") from exc
            raise ConflictError("User", "Email is already registered.") from exc

        log.info("User registered", extra={"user_id": view.id})
        return self.sessions.issue_session(view)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Verify credentials and issue a fresh session.

        :raises InvalidCredentialsError: Unknown username or wrong password
            (indistinguishable on purpose).
        """
        with self.ro_uow() as uow:
            user = uow.users.authenticate(dto.username, dto.password)
            view = UserView.of(user) if user is not None else None

        if view is None:
            log.warning("Failed login attempt from %s", self.ctx.client_ip or "unknown")
            raise InvalidCredentialsError()

        log.info("User logged in", extra={"user_id": view.id})
        return self.sessions.issue_session(view)

    # ------------------------------------------------------------------ #
    # Refresh / Logout
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> SessionOut:
        """
        Rotate the presented refresh token.

        :raises InvalidRefreshTokenError: For any token that cannot be rotated.
        """
        return self.sessions.rotate(dto.refresh_token)

    def logout(self, dto: LogoutIn) -> None:
        """Revoke the presented refresh token; repeated calls are harmless."""
        self.sessions.revoke(dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def whoami(self, user_id: int) -> UserView:
        """
        Return the profile of the authenticated user.

        :raises NotFoundError: If the account was deleted after the token was issued.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserView.of(user)
