"""Backlog task model for general personal to-do items."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from personal_crm.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)
TASK_STATUSES = frozenset({"todo", "in_progress", "completed"})
TASK_PRIORITIES = frozenset({"low", "medium", "high", "urgent"})


class Task(SQLModel, table=True):
    """Backlog task; urgent tasks may reference it but never own it."""

    __tablename__ = "personal_tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str | None = None
    status: str = Field(default="todo", index=True)
    priority: str = Field(default="medium", index=True)
    category: str | None = Field(default=None, index=True)
    due_date: datetime | None = None
    completed_at: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
