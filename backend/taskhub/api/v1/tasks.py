"""Task endpoints scoped to the authenticated user."""

from __future__ import annotations

from flask import Blueprint, request

from taskhub.api.deps import json_response, load_json, no_content, require_auth
from taskhub.core.security import current_user_id, service_context
from taskhub.schemas import (
    TaskCreateSchema,
    TaskListQuerySchema,
    TaskSchema,
    TaskUpdateSchema,
    build_meta,
)
from taskhub.services.tasks.dto import TaskCreateIn, TaskListIn, TaskUpdateIn
from taskhub.services.tasks.service import TaskService

bp = Blueprint("tasks", __name__)

task_schema = TaskSchema()
tasks_schema = TaskSchema(many=True)
create_schema = TaskCreateSchema()
update_schema = TaskUpdateSchema()


def _service() -> TaskService:
    return TaskService(ctx=service_context(actor_id=current_user_id()))


@bp.get("")
@require_auth
def list_tasks():
    """List the caller's tasks, incomplete first then newest."""

    return json_response({"data": tasks_schema.dump(_service().list_tasks())})


@bp.get("/paged")
@require_auth
def list_tasks_paged():
    """Page through the caller's tasks with optional filter and sort."""

    query = TaskListQuerySchema().load(request.args)
    items, meta = _service().list_tasks_paged(TaskListIn(**query))
    return json_response({"data": tasks_schema.dump(items), "meta": build_meta(meta)})


@bp.get("/<int:task_id>")
@require_auth
def get_task(task_id: int):
    return json_response({"data": task_schema.dump(_service().get_task(task_id))})


@bp.post("")
@require_auth
def create_task():
    """Create a task owned by the caller."""

    data = load_json(create_schema)
    task = _service().create_task(TaskCreateIn(**data))
    return json_response({"data": task_schema.dump(task)}, status=201)


@bp.put("/<int:task_id>")
@require_auth
def update_task(task_id: int):
    """Apply a partial update to one of the caller's tasks."""

    data = load_json(update_schema)
    task = _service().update_task(task_id, TaskUpdateIn(changes=data))
    return json_response({"data": task_schema.dump(task)})


@bp.delete("/<int:task_id>")
@require_auth
def delete_task(task_id: int):
    _service().delete_task(task_id)
    return no_content()
