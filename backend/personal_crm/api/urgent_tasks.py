"""Urgent task endpoints: ordered listing, creation, promotion, updates, reorder."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from personal_crm.api.deps import get_urgent_task_service
from personal_crm.schemas.common import OkResponse
from personal_crm.schemas.errors import ErrorResponse
from personal_crm.schemas.urgent_tasks import (
    UrgentTaskCreate,
    UrgentTaskPromote,
    UrgentTaskRead,
    UrgentTaskReorder,
    UrgentTaskUpdate,
)
from personal_crm.services.urgent_tasks import UrgentTaskChanges, UrgentTaskService

router = APIRouter(prefix="/urgent-tasks", tags=["urgent-tasks"])
SERVICE_DEP = Depends(get_urgent_task_service)
_BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}
_NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}


def _read(task: object) -> UrgentTaskRead:
    return UrgentTaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=list[UrgentTaskRead])
async def list_urgent_tasks(
    service: UrgentTaskService = SERVICE_DEP,
) -> list[UrgentTaskRead]:
    """List urgent tasks in display order."""
    return [_read(task) for task in await service.list_urgent_tasks()]


@router.post(
    "",
    response_model=UrgentTaskRead,
    status_code=status.HTTP_201_CREATED,
    responses=_BAD_REQUEST,
)
async def create_urgent_task(
    payload: UrgentTaskCreate,
    service: UrgentTaskService = SERVICE_DEP,
) -> UrgentTaskRead:
    """Create an ad-hoc urgent task at the end of the order."""
    task = await service.create_urgent_task(
        payload.title,
        payload.description,
        original_task_id=payload.original_task_id,
    )
    return _read(task)


@router.post(
    "/move-task",
    response_model=UrgentTaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        **_BAD_REQUEST,
        **_NOT_FOUND,
        status.HTTP_409_CONFLICT: {"model": ErrorResponse},
    },
)
async def promote_task(
    payload: UrgentTaskPromote,
    service: UrgentTaskService = SERVICE_DEP,
) -> UrgentTaskRead:
    """Promote a backlog task into the urgent list without altering it."""
    task = await service.promote_task(payload.task_id, payload.title, payload.description)
    return _read(task)


@router.put("/reorder", response_model=OkResponse, responses={**_BAD_REQUEST, **_NOT_FOUND})
async def reorder_urgent_tasks(
    payload: UrgentTaskReorder,
    service: UrgentTaskService = SERVICE_DEP,
) -> OkResponse:
    """Persist a client-submitted order for the urgent list."""
    await service.reorder_urgent_tasks(payload.task_updates)
    return OkResponse()


@router.api_route(
    "/{urgent_task_id}",
    methods=["PATCH", "PUT"],
    response_model=UrgentTaskRead,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
)
async def update_urgent_task(
    urgent_task_id: UUID,
    payload: UrgentTaskUpdate,
    service: UrgentTaskService = SERVICE_DEP,
) -> UrgentTaskRead:
    """Update only the fields present in the request body."""
    task = await service.update_urgent_task(
        urgent_task_id,
        UrgentTaskChanges.from_payload(payload),
    )
    return _read(task)


@router.delete("/{urgent_task_id}", response_model=OkResponse)
async def delete_urgent_task(
    urgent_task_id: UUID,
    service: UrgentTaskService = SERVICE_DEP,
) -> OkResponse:
    """Delete an urgent task; the referenced backlog task is left untouched."""
    await service.delete_urgent_task(urgent_task_id)
    return OkResponse()
