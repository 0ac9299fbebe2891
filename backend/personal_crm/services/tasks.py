"""Backlog task service and list query helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import or_
from sqlmodel import col, select

from personal_crm.core.logging import get_logger
from personal_crm.core.time import utcnow
from personal_crm.models.tasks import Task
from personal_crm.services.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from sqlmodel.sql.expression import SelectOfScalar

    from personal_crm.schemas.tasks import TaskCreate
    from personal_crm.storage.interfaces import TaskStore

logger = get_logger(__name__)

COMPLETED_STATUS = "completed"


def task_list_statement(
    *,
    status: str | None = None,
    priority: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> SelectOfScalar[Task]:
    """Build the newest-first backlog query with optional filters."""
    statement = select(Task)
    if status is not None:
        statement = statement.where(col(Task.status) == status)
    if priority is not None:
        statement = statement.where(col(Task.priority) == priority)
    if category is not None:
        statement = statement.where(col(Task.category) == category)
    if search is not None and search.strip():
        pattern = f"%{search.strip()}%"
        statement = statement.where(
            or_(col(Task.title).ilike(pattern), col(Task.description).ilike(pattern)),
        )
    return statement.order_by(col(Task.created_at).desc(), col(Task.id).desc())


def _apply_completion(fields: dict[str, Any], *, previous_status: str | None) -> None:
    status = fields.get("status")
    if status is None:
        return
    if status == COMPLETED_STATUS:
        if fields.get("completed_at") is None and previous_status != COMPLETED_STATUS:
            fields["completed_at"] = utcnow()
    else:
        fields["completed_at"] = None


class TaskService:
    """CRUD over backlog tasks; deleting one never touches urgent tasks."""

    def __init__(self, tasks: TaskStore) -> None:
        self._tasks = tasks

    async def get_task(self, task_id: UUID) -> Task:
        task = await self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def create_task(self, payload: TaskCreate) -> Task:
        if payload.title is None or not payload.title.strip():
            raise ValidationError("Title is required")
        fields: dict[str, Any] = payload.model_dump()
        fields["title"] = payload.title.strip()
        _apply_completion(fields, previous_status=None)
        task = await self._tasks.create(Task(**fields))
        logger.info("tasks.created", extra={"task_id": str(task.id), "status": task.status})
        return task

    async def update_task(self, task_id: UUID, changes: Mapping[str, object]) -> Task:
        fields = dict(changes)
        if "title" in fields:
            title = fields["title"]
            if not isinstance(title, str) or not title.strip():
                raise ValidationError("Title is required")
            fields["title"] = title.strip()
        for required in ("status", "priority"):
            if required in fields and fields[required] is None:
                raise ValidationError(f"{required} cannot be null")
        current = await self.get_task(task_id)
        _apply_completion(fields, previous_status=current.status)
        updated = await self._tasks.update(task_id, fields)
        if updated is None:
            raise NotFoundError("Task not found")
        return updated

    async def delete_task(self, task_id: UUID) -> None:
        if not await self._tasks.delete(task_id):
            raise NotFoundError("Task not found")
        logger.info("tasks.deleted", extra={"task_id": str(task_id)})
