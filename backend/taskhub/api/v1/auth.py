"""Authentication endpoints: register, login, refresh, logout, me."""

from __future__ import annotations

from flask import Blueprint

from taskhub.api.deps import json_response, load_json, no_content, require_auth
from taskhub.core.security import current_user_id, get_auth_service
from taskhub.schemas import (
    AuthResponseSchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    RegisterSchema,
    WhoAmISchema,
)
from taskhub.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn, SessionOut

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()
auth_response_schema = AuthResponseSchema()
whoami_schema = WhoAmISchema()


def _auth_body(session: SessionOut) -> dict:
    return {
        "data": auth_response_schema.dump(
            {
                "access_token": session.access_token,
                "access_token_expires_at": session.access_expires_at,
                "refresh_token": session.refresh_token,
                "refresh_token_expires_at": session.refresh_expires_at,
                "username": session.user.username,
                "role": session.user.role,
            }
        )
    }


@bp.post("/register")
def register():
    """Create an account and return its first session."""

    data = load_json(register_schema)
    session = get_auth_service().register(RegisterIn(**data))
    return json_response(_auth_body(session), status=201)


@bp.post("/login")
def login():
    """Authenticate credentials and issue a session."""

    data = load_json(login_schema)
    session = get_auth_service().login(LoginIn(**data))
    return json_response(_auth_body(session))


@bp.post("/refresh")
def refresh():
    """Exchange a refresh token for a new session (single use)."""

    data = load_json(refresh_schema)
    session = get_auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response(_auth_body(session))


@bp.post("/logout")
@require_auth
def logout():
    """Revoke the given refresh token; always ``204``."""

    data = load_json(logout_schema)
    get_auth_service().logout(LogoutIn(refresh_token=data.get("refresh_token") or ""))
    return no_content()


@bp.get("/me")
@require_auth
def me():
    """Return the authenticated user profile."""

    user = get_auth_service().whoami(current_user_id())
    return json_response({"data": whoami_schema.dump(user)})
