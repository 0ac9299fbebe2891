"""Schemas for backlog task create/update/read payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

TaskStatus = Literal["todo", "in_progress", "completed"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class TaskBase(SQLModel):
    """Shared backlog task fields used across create and read payloads."""

    title: str
    description: str | None = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    category: str | None = None
    due_date: datetime | None = None


class TaskCreate(SQLModel):
    """Payload for creating a backlog task."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    category: str | None = None
    due_date: datetime | None = None


class TaskUpdate(SQLModel):
    """Partial update payload for a backlog task."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: str | None = None
    due_date: datetime | None = None
    completed_at: datetime | None = None


class TaskRead(TaskBase):
    """Backlog task payload returned by read endpoints."""

    id: UUID
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
