"""Schemas for urgent task create/promote/update/reorder/read payloads.

Required-field checks (blank titles, malformed reorder lists) are enforced by
`UrgentTaskService` so they surface as 400s rather than schema 422s.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import ConfigDict
from sqlmodel import Field, SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class UrgentTaskCreate(SQLModel):
    """Payload for creating an ad-hoc urgent task."""

    title: str | None = None
    description: str | None = None
    original_task_id: UUID | None = None


class UrgentTaskPromote(SQLModel):
    """Payload for promoting a backlog task into the urgent list."""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str | None = Field(default=None, alias="taskId")
    title: str | None = None
    description: str | None = None


class UrgentTaskUpdate(SQLModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = None
    description: str | None = None
    order_index: int | None = None


class UrgentTaskReorder(SQLModel):
    """Batch reorder request; `taskUpdates` shape is validated by the service."""

    model_config = ConfigDict(populate_by_name=True)

    task_updates: Any = Field(default=None, alias="taskUpdates")


class UrgentTaskRead(SQLModel):
    """Urgent task payload returned by read endpoints."""

    id: UUID
    title: str
    description: str | None = None
    order_index: int
    original_task_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
