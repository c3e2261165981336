"""Schemas reused by every paged listing."""

from __future__ import annotations

from typing import Any

from marshmallow import Schema, fields, post_load, validate

from taskhub.services._shared.dto import PageMeta

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginationQuerySchema(Schema):
    """``?page=&limit=`` with ``limit`` capped at ``MAX_PAGE_SIZE``."""

    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=DEFAULT_PAGE_SIZE, validate=validate.Range(min=1))

    @post_load
    def cap_limit(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        data["limit"] = min(data["limit"], MAX_PAGE_SIZE)
        return data


class MetaSchema(Schema):
    page = fields.Integer()
    limit = fields.Integer()
    total = fields.Integer()
    has_prev = fields.Boolean()
    has_next = fields.Boolean()


_meta_schema = MetaSchema()


def build_meta(meta: PageMeta) -> dict[str, Any]:
    """Serialise ``meta`` for the ``"meta"`` key of a paged response."""
    return _meta_schema.dump(meta)
