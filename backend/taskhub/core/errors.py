"""Problem Details (RFC 7807) responses for every error the API can emit."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from taskhub.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"


def status_code_name(status: int) -> str:
    """``404`` -> ``"not_found"``; unknown statuses map to ``"error"``."""
    try:
        return HTTPStatus(status).name.lower()
    except ValueError:
        return "error"


def problem(
    status: int, code: str, detail: str, *, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": detail,
        "instance": request.path,
        "code": code,
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    return body


def render(body: dict[str, Any]) -> tuple[Response, int]:
    """Log the problem (error for 5xx, warning otherwise) and build the response."""
    status = body["status"]
    level = logging.ERROR if status >= 500 else logging.WARNING
    log.log(
        level,
        "problem: status=%s code=%s detail=%s request_id=%s",
        status,
        body["code"],
        body["detail"],
        body["request_id"],
    )
    resp = jsonify(body)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, status


def unauthorized_response(message: str) -> tuple[Response, int]:
    """401 body for the flask-jwt-extended loader callbacks."""
    return render(problem(HTTPStatus.UNAUTHORIZED, "unauthorized", message))


class APIError(Exception):
    """
    An error that already knows its HTTP shape.

    :param message: Client-safe description, sent as ``detail``.
    :param status_code: HTTP status, 400 unless given.
    :param code: Stable snake_case identifier for clients to branch on.
    :param details: Optional structured extras.
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_REQUEST,
        code: str = "bad_request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return problem(self.status_code, self.code, self.message, details=self.details)


class NotFound(APIError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, HTTPStatus.NOT_FOUND, "not_found")


class Conflict(APIError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, HTTPStatus.CONFLICT, "conflict")


class Unauthorized(APIError):
    """401; ``code`` tells clients whether to re-login or to refresh."""

    def __init__(self, message: str = "Unauthorized", code: str = "unauthorized") -> None:
        super().__init__(message, HTTPStatus.UNAUTHORIZED, code)


class Forbidden(APIError):
    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, HTTPStatus.FORBIDDEN, "forbidden")


class ServiceUnavailable(APIError):
    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(message, HTTPStatus.SERVICE_UNAVAILABLE, "service_unavailable")


def init_app(app: Flask) -> None:
    """
    Register the error handlers.

    Service errors go through
    :meth:`~taskhub.services._shared.base.BaseService.translate_exceptions`.
    Database errors and unexpected exceptions are logged with traceback and
    answered with a generic body.
    """
    from taskhub.services._shared.base import BaseService
    from taskhub.services._shared.errors import ServiceError

    @app.errorhandler(APIError)
    def on_api_error(err: APIError):
        return render(err.to_problem())

    @app.errorhandler(ServiceError)
    def on_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover
            translated = APIError(str(err))
        return render(translated.to_problem())

    @app.errorhandler(HTTPException)
    def on_http_exception(err: HTTPException):
        status = err.code or HTTPStatus.INTERNAL_SERVER_ERROR
        if status == HTTPStatus.NOT_FOUND:
            detail = f"Route '{request.path}' not found"
        else:
            detail = (err.description or HTTPStatus(status).phrase).strip()
        return render(problem(status, status_code_name(status), detail))

    @app.errorhandler(ValidationError)
    def on_validation_error(err: ValidationError):
        body = problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "validation_error",
            "Validation failed",
            details={"errors": err.messages},
        )
        return render(body)

    @app.errorhandler(IntegrityError)
    def on_integrity_error(err: IntegrityError):
        log.error("integrity error", exc_info=err)
        return render(problem(HTTPStatus.CONFLICT, "conflict", "Resource conflict"))

    @app.errorhandler(OperationalError)
    def on_operational_error(err: OperationalError):
        log.error("database unavailable", exc_info=err)
        return render(ServiceUnavailable().to_problem())

    @app.errorhandler(Exception)
    def on_unexpected(err: Exception):
        log.error("unhandled exception", exc_info=err)
        return render(
            problem(HTTPStatus.INTERNAL_SERVER_ERROR, "internal_server_error", "Unexpected error")
        )
