"""Service errors -> HTTP problem mapping."""

from __future__ import annotations

import pytest

from taskhub.core.errors import APIError
from taskhub.services._shared.base import BaseService
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


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (NotFoundError("Task", 7), 404, "not_found"),
        (ConflictError("User", "Username is already taken."), 409, "conflict"),
        (AuthorizationError(), 403, "forbidden"),
        (InvalidCredentialsError(), 401, "invalid_credentials"),
        (InvalidRefreshTokenError(), 401, "invalid_refresh_token"),
        (InvalidAccessTokenError(), 401, "unauthorized"),
        (StoreUnavailableError(), 503, "service_unavailable"),
        (ServiceError("An authenticated user is required."), 400, "bad_request"),
    ],
)
def test_status_and_code(error, status, code):
    translated = BaseService.translate_exceptions(error)

    assert isinstance(translated, APIError)
    assert (translated.status_code, translated.code) == (status, code)


def test_message_is_kept_except_for_store_outages():
    assert BaseService.translate_exceptions(NotFoundError("Task", 7)).message == "Task not found: 7"
    outage = BaseService.translate_exceptions(StoreUnavailableError("redis: connection refused"))
    assert "redis" not in outage.message


def test_foreign_exceptions_pass_through():
    err = KeyError("x")
    assert BaseService.translate_exceptions(err) is err
