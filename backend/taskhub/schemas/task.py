"""Task Marshmallow schemas."""

from __future__ import annotations

from datetime import UTC

from marshmallow import Schema, ValidationError, fields, validate

from taskhub.core.clock import utc_now
from taskhub.models.task import DESCRIPTION_MAX, TITLE_MAX

from .common import PaginationQuerySchema

TITLE_RULES = validate.And(
    validate.Length(min=1, max=TITLE_MAX),
    validate.Regexp(r"\s*\S", error="Title is required."),
)


def _future(value) -> None:
    if value is not None and value <= utc_now():
        raise ValidationError("Due date must be in the future.")


class TaskSchema(Schema):
    """Serialized representation of a task."""

    id = fields.Integer(dump_only=True)
    title = fields.String(required=True)
    description = fields.String(allow_none=True)
    due_date = fields.AwareDateTime(allow_none=True)
    is_completed = fields.Boolean()
    user_id = fields.Integer(dump_only=True)
    created_at = fields.AwareDateTime(dump_only=True)
    updated_at = fields.AwareDateTime(dump_only=True)


class TaskCreateSchema(Schema):
    """Input payload for creating a task."""

    title = fields.String(required=True, validate=TITLE_RULES)
    description = fields.String(
        load_default=None, allow_none=True, validate=validate.Length(max=DESCRIPTION_MAX)
    )
    due_date = fields.AwareDateTime(
        load_default=None, allow_none=True, default_timezone=UTC, validate=_future
    )


class TaskUpdateSchema(Schema):
    """Partial update payload; absent keys are left unchanged."""

    title = fields.String(validate=TITLE_RULES)
    description = fields.String(allow_none=True, validate=validate.Length(max=DESCRIPTION_MAX))
    due_date = fields.AwareDateTime(allow_none=True, default_timezone=UTC)
    is_completed = fields.Boolean()


class TaskListQuerySchema(PaginationQuerySchema):
    """Query string of ``GET /tasks/paged``."""

    is_completed = fields.Boolean(load_default=None, allow_none=True)
    sort_by = fields.String(
        load_default=None, allow_none=True, validate=validate.OneOf(["due_date", "created_at"])
    )
