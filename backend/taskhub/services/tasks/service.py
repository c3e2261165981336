from __future__ import annotations

import logging

from taskhub.models.task import Task
from taskhub.services._shared.base import BaseService
from taskhub.services._shared.dto import PageMeta
from taskhub.services._shared.errors import NotFoundError, ServiceError
from taskhub.services.tasks.dto import TaskCreateIn, TaskListIn, TaskOut, TaskUpdateIn

log = logging.getLogger(__name__)


class TaskService(BaseService):
    """
    Per-user task CRUD.

    The actor comes from ``ctx.actor_id``. Missing tasks raise
    :class:`NotFoundError`; tasks of other users raise
    :class:`~taskhub.services._shared.errors.AuthorizationError`.
    """

    def _actor(self) -> int:
        if self.ctx.actor_id is None:
            raise ServiceError("An authenticated user is required.")
        return int(self.ctx.actor_id)

    def _owned(self, repo, task_id: int) -> Task:
        task = repo.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        self.ensure_owner(self.ctx.actor_id, task.user_id)
        return task

    # ------------------------------ Queries ---------------------------------

    def list_tasks(self) -> list[TaskOut]:
        """Return all of the actor's tasks, incomplete first then newest."""
        actor = self._actor()
        with self.ro_uow() as uow:
            return [TaskOut.from_model(t) for t in uow.tasks.list_for_user(actor)]

    def list_tasks_paged(self, dto: TaskListIn) -> tuple[list[TaskOut], PageMeta]:
        """Return one page of the actor's tasks plus pagination metadata."""
        actor = self._actor()
        with self.ro_uow() as uow:
            page = uow.tasks.paginate_for_user(
                actor,
                page=dto.page,
                limit=dto.limit,
                is_completed=dto.is_completed,
                sort_by=dto.sort_by,
            )
            items = [TaskOut.from_model(t) for t in page.items]
        return items, PageMeta.build(page=page.page, limit=page.limit, total=page.total)

    def get_task(self, task_id: int) -> TaskOut:
        self._actor()
        with self.ro_uow() as uow:
            return TaskOut.from_model(self._owned(uow.tasks, task_id))

    # ------------------------------ Commands --------------------------------

    def create_task(self, dto: TaskCreateIn) -> TaskOut:
        actor = self._actor()
        with self.rw_uow() as uow:
            task = Task(
                title=dto.title,
                description=dto.description,
                due_date=dto.due_date,
                is_completed=False,
                user_id=actor,
            )
            uow.tasks.add(task)
            out = TaskOut.from_model(task)
        log.info("Task created", extra={"user_id": actor})
        return out

    def update_task(self, task_id: int, dto: TaskUpdateIn) -> TaskOut:
        self._actor()
        with self.rw_uow() as uow:
            task = self._owned(uow.tasks, task_id)
            uow.tasks.assign_updates(task, dto.changes)
            out = TaskOut.from_model(task)
        return out

    def delete_task(self, task_id: int) -> None:
        actor = self._actor()
        with self.rw_uow() as uow:
            uow.tasks.delete(self._owned(uow.tasks, task_id))
        log.info("Task deleted", extra={"user_id": actor})
