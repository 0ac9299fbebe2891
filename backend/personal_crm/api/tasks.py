"""Backlog task endpoints used to manage the tasks that can be promoted."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from personal_crm.api.deps import SESSION_DEP, get_task_service
from personal_crm.db.pagination import paginate
from personal_crm.schemas.common import OkResponse
from personal_crm.schemas.errors import ErrorResponse
from personal_crm.schemas.pagination import DefaultLimitOffsetPage
from personal_crm.schemas.tasks import (
    TaskCreate,
    TaskPriority,
    TaskRead,
    TaskStatus,
    TaskUpdate,
)
from personal_crm.services.tasks import TaskService, task_list_statement

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fastapi_pagination.limit_offset import LimitOffsetPage
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/tasks", tags=["tasks"])
SERVICE_DEP = Depends(get_task_service)
STATUS_QUERY = Query(default=None, alias="status")
PRIORITY_QUERY = Query(default=None)
CATEGORY_QUERY = Query(default=None)
SEARCH_QUERY = Query(default=None, min_length=1)
_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _read(task: object) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


def _transform(items: Sequence[Any]) -> Sequence[Any]:
    return [_read(item) for item in items]


@router.get("", response_model=DefaultLimitOffsetPage[TaskRead])
async def list_tasks(
    task_status: TaskStatus | None = STATUS_QUERY,
    priority: TaskPriority | None = PRIORITY_QUERY,
    category: str | None = CATEGORY_QUERY,
    search: str | None = SEARCH_QUERY,
    session: AsyncSession = SESSION_DEP,
) -> LimitOffsetPage[TaskRead]:
    """List backlog tasks newest first with optional filters."""
    statement = task_list_statement(
        status=task_status,
        priority=priority,
        category=category,
        search=search,
    )
    return await paginate(session, statement, transformer=_transform)


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
)
async def create_task(
    payload: TaskCreate,
    service: TaskService = SERVICE_DEP,
) -> TaskRead:
    """Create a backlog task."""
    return _read(await service.create_task(payload))


@router.get("/{task_id}", response_model=TaskRead, responses=_NOT_FOUND)
async def get_task(
    task_id: UUID,
    service: TaskService = SERVICE_DEP,
) -> TaskRead:
    """Fetch one backlog task."""
    return _read(await service.get_task(task_id))


@router.patch("/{task_id}", response_model=TaskRead, responses=_NOT_FOUND)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    service: TaskService = SERVICE_DEP,
) -> TaskRead:
    """Update the fields present in the request body."""
    updates = payload.model_dump(exclude_unset=True)
    return _read(await service.update_task(task_id, updates))


@router.delete("/{task_id}", response_model=OkResponse, responses=_NOT_FOUND)
async def delete_task(
    task_id: UUID,
    service: TaskService = SERVICE_DEP,
) -> OkResponse:
    """Delete a backlog task; urgent tasks referencing it keep their link."""
    await service.delete_task(task_id)
    return OkResponse()
