"""Request/response helpers used by every TaskHub endpoint."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, jsonify, request
from flask_jwt_extended import verify_jwt_in_request
from marshmallow import Schema

View = TypeVar("View", bound=Callable[..., Any])


def load_json(schema: Schema) -> dict[str, Any]:
    """Run ``schema.load`` over the request body.

    A missing or unparsable body is treated as an empty object so that the
    schema, not Flask, reports which fields are required.
    """

    body = request.get_json(silent=True)
    return schema.load(body if body is not None else {})


def require_auth(view: View) -> View:
    """Reject the request with 401 unless it carries a valid access token."""

    @functools.wraps(view)
    def guarded(*args: Any, **kwargs: Any):
        verify_jwt_in_request()
        return view(*args, **kwargs)

    return guarded  # type: ignore[return-value]


def json_response(body: Any, *, status: int = 200) -> Response:
    resp = jsonify(body)
    resp.status_code = status
    return resp


def no_content() -> Response:
    return Response(status=204)
