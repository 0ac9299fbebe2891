"""Urgent task ordering engine: creation, promotion, updates, deletion, reordering.

Urgent tasks form a single total order by `order_index`. Every write that
changes positions leaves the stored indices contiguous from zero:

- create appends at the current count;
- delete compacts the remaining rows;
- reorder and positional updates reassign `0..N-1` in one store call.

Validation always runs before the first store write.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
from uuid import UUID

from personal_crm.core.logging import get_logger
from personal_crm.models.urgent_tasks import UrgentTask
from personal_crm.services.errors import ConflictError, NotFoundError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlmodel import SQLModel

    from personal_crm.storage.interfaces import TaskStore, UrgentTaskStore

logger = get_logger(__name__)

_UPDATABLE_FIELDS = frozenset({"title", "description", "order_index"})


@dataclass(frozen=True)
class UrgentTaskChanges:
    """Explicit partial update: a field is applied only if it is in `fields`."""

    fields: Mapping[str, object] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: SQLModel) -> UrgentTaskChanges:
        return cls(fields=payload.model_dump(exclude_unset=True))

    def has(self, name: str) -> bool:
        return name in self.fields

    def get(self, name: str) -> object:
        return self.fields[name]


@dataclass(frozen=True)
class OrderUpdate:
    """One requested (id, position) pair from a reorder call."""

    id: UUID
    order_index: int


def _require_title(title: object) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title is required")
    return title.strip()


def _clean_description(description: object) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError("Description must be a string")
    return description.strip()


def _parse_uuid(value: object, *, label: str) -> UUID:
    if isinstance(value, UUID):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return UUID(value.strip())
        except ValueError as exc:
            raise ValidationError(f"{label} must be a valid UUID") from exc
    raise ValidationError(f"{label} is required")


def _parse_position(value: object, *, label: str = "order_index") -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer")
    if value < 0:
        raise ValidationError(f"{label} must be non-negative")
    return value


def parse_order_updates(updates: object) -> list[OrderUpdate]:
    """Validate a raw `taskUpdates` payload into distinct (id, position) pairs."""
    if not isinstance(updates, list):
        raise ValidationError("Invalid task updates")
    parsed: list[OrderUpdate] = []
    seen_ids: set[UUID] = set()
    seen_positions: set[int] = set()
    for entry in updates:
        if isinstance(entry, OrderUpdate):
            item = entry
        elif isinstance(entry, Mapping):
            if "id" not in entry or "order_index" not in entry:
                raise ValidationError("Each task update needs id and order_index")
            item = OrderUpdate(
                id=_parse_uuid(entry["id"], label="id"),
                order_index=_parse_position(entry["order_index"]),
            )
        else:
            raise ValidationError("Invalid task updates")
        if item.id in seen_ids:
            raise ValidationError(f"Duplicate id in task updates: {item.id}")
        if item.order_index in seen_positions:
            raise ValidationError(f"Duplicate order_index in task updates: {item.order_index}")
        seen_ids.add(item.id)
        seen_positions.add(item.order_index)
        parsed.append(item)
    return parsed


def _display_key(task: UrgentTask) -> tuple[int, object, str]:
    return (task.order_index, task.created_at, str(task.id))


def _changed_positions(ordered: Sequence[UrgentTask]) -> list[tuple[UUID, int]]:
    return [
        (task.id, position)
        for position, task in enumerate(ordered)
        if task.order_index != position
    ]


class UrgentTaskService:
    """Maintains the urgent task order on top of injected stores."""

    def __init__(self, urgent_tasks: UrgentTaskStore, tasks: TaskStore) -> None:
        self._urgent_tasks = urgent_tasks
        self._tasks = tasks

    async def list_urgent_tasks(self) -> list[UrgentTask]:
        rows = await self._urgent_tasks.list_ordered()
        return sorted(rows, key=_display_key)

    async def create_urgent_task(
        self,
        title: object,
        description: object = None,
        original_task_id: UUID | None = None,
    ) -> UrgentTask:
        """Append a new urgent task at the end of the order.

        A backlog task can sit in the urgent list at most once, so a second
        task pointing at the same `original_task_id` is a conflict.
        """
        clean_title = _require_title(title)
        clean_description = _clean_description(description)
        if (
            original_task_id is not None
            and await self._urgent_tasks.find_by_original_task(original_task_id) is not None
        ):
            raise ConflictError("Task is already in urgent list")
        order_index = await self._urgent_tasks.count()
        task = await self._urgent_tasks.create(
            UrgentTask(
                title=clean_title,
                description=clean_description,
                order_index=order_index,
                original_task_id=original_task_id,
            ),
        )
        logger.info(
            "urgent_tasks.created",
            extra={
                "urgent_task_id": str(task.id),
                "order_index": task.order_index,
                "original_task_id": str(original_task_id) if original_task_id else None,
            },
        )
        return task

    async def promote_task(
        self,
        task_id: object,
        title: object,
        description: object = None,
    ) -> UrgentTask:
        """Create an urgent task that references an existing backlog task.

        The backlog task is only read, never written.
        """
        source_id = _parse_uuid(task_id, label="Task ID")
        clean_title = _require_title(title)
        clean_description = _clean_description(description)
        source = await self._tasks.get(source_id)
        if source is None:
            raise NotFoundError("Task not found")
        return await self.create_urgent_task(
            clean_title,
            clean_description,
            original_task_id=source_id,
        )

    async def update_urgent_task(
        self,
        urgent_task_id: UUID,
        changes: UrgentTaskChanges,
    ) -> UrgentTask:
        """Apply the present fields; a present `order_index` moves the task."""
        unknown = set(changes.fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
        fields: dict[str, object] = {}
        if changes.has("title"):
            fields["title"] = _require_title(changes.get("title"))
        if changes.has("description"):
            fields["description"] = _clean_description(changes.get("description"))
        target_position: int | None = None
        if changes.has("order_index"):
            target_position = _parse_position(changes.get("order_index"))

        current = await self._urgent_tasks.get(urgent_task_id)
        if current is None:
            raise NotFoundError("Urgent task not found")

        if target_position is None or target_position == current.order_index:
            if not fields:
                return current
            updated = await self._urgent_tasks.update(urgent_task_id, fields)
        else:
            # Field changes ride along with the position writes in one transaction.
            ordered = [row for row in await self.list_urgent_tasks() if row.id != current.id]
            ordered.insert(min(target_position, len(ordered)), current)
            await self._urgent_tasks.bulk_update_order(
                _changed_positions(ordered),
                updates={urgent_task_id: fields} if fields else None,
            )
            updated = await self._urgent_tasks.get(urgent_task_id)
        if updated is None:
            raise NotFoundError("Urgent task not found")
        return updated

    async def delete_urgent_task(self, urgent_task_id: UUID) -> None:
        """Delete and compact in one store write; deleting a missing id is a no-op."""
        current = await self.list_urgent_tasks()
        if urgent_task_id not in {task.id for task in current}:
            logger.debug(
                "urgent_tasks.delete.missing",
                extra={"urgent_task_id": str(urgent_task_id)},
            )
            return
        remaining = [task for task in current if task.id != urgent_task_id]
        positions = _changed_positions(remaining)
        await self._urgent_tasks.bulk_update_order(positions, delete_id=urgent_task_id)
        logger.info(
            "urgent_tasks.deleted",
            extra={"urgent_task_id": str(urgent_task_id), "compacted": len(positions)},
        )

    async def reorder_urgent_tasks(self, updates: object) -> None:
        """Apply a client-submitted order as a single all-or-nothing write.

        Tasks are ranked by their submitted index; tasks the caller left out
        keep their current index and lose ties to submitted ones. The result
        is renumbered `0..N-1`.
        """
        requested = parse_order_updates(updates)
        current = await self.list_urgent_tasks()
        known = {task.id for task in current}
        missing = [str(item.id) for item in requested if item.id not in known]
        if missing:
            raise NotFoundError(f"Urgent task not found: {', '.join(missing)}")

        submitted = {item.id: item.order_index for item in requested}
        ranked = sorted(
            current,
            key=lambda task: (
                submitted.get(task.id, task.order_index),
                0 if task.id in submitted else 1,
            ),
        )
        positions = _changed_positions(ranked)
        if positions:
            await self._urgent_tasks.bulk_update_order(positions)
        logger.info(
            "urgent_tasks.reorder.applied",
            extra={"requested": len(requested), "moved": len(positions)},
        )
