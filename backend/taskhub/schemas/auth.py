"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

PASSWORD_RULES = validate.And(
    validate.Length(min=6, max=128),
    validate.Regexp(r".*[A-Z]", error="Password must contain an uppercase letter."),
    validate.Regexp(r".*[a-z]", error="Password must contain a lowercase letter."),
    validate.Regexp(r".*\d", error="Password must contain a digit."),
)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(required=True, validate=validate.Length(min=3, max=64))
    email = fields.Email(required=True, validate=validate.Length(max=100))
    password = fields.String(required=True, load_only=True, validate=PASSWORD_RULES)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    username = fields.String(required=True, validate=validate.Length(min=1, max=64))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class RefreshTokenSchema(Schema):
    """Input payload carrying an opaque refresh token (refresh and logout)."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=512))


class LogoutSchema(Schema):
    """Logout payload; a missing token still yields ``204``."""

    refresh_token = fields.String(load_default=None, allow_none=True)


class AuthResponseSchema(Schema):
    """Response payload for register, login and refresh."""

    access_token = fields.String(required=True)
    access_token_expires_at = fields.AwareDateTime(required=True)
    refresh_token = fields.String(required=True)
    refresh_token_expires_at = fields.AwareDateTime(required=True)
    username = fields.String(required=True)
    role = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")


class WhoAmISchema(Schema):
    """Response payload exposing identity details for the authenticated user."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    role = fields.String(required=True)
