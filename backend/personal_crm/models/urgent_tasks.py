"""Urgent task model: the ordered focus list kept apart from the backlog."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from personal_crm.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class UrgentTask(SQLModel, table=True):
    """Prioritized task whose rank is `order_index` (unique among stored rows)."""

    __tablename__ = "urgent_tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str | None = None
    order_index: int = Field(default=0, unique=True)
    # Weak reference: no foreign key, deleting the backlog task does not cascade.
    original_task_id: UUID | None = Field(default=None, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
