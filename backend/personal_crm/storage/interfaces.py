"""Repository interfaces the services depend on.

Services receive these as constructor arguments so tests can swap in
in-memory fakes; the SQL implementations live in `personal_crm.storage.sql`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from personal_crm.models.tasks import Task
    from personal_crm.models.urgent_tasks import UrgentTask


class UrgentTaskStore(ABC):
    @abstractmethod
    async def create(self, task: UrgentTask) -> UrgentTask:
        raise NotImplementedError

    @abstractmethod
    async def get(self, urgent_task_id: UUID) -> UrgentTask | None:
        raise NotImplementedError

    @abstractmethod
    async def update(
        self,
        urgent_task_id: UUID,
        fields: Mapping[str, object],
    ) -> UrgentTask | None:
        """Apply only the given fields; returns None when the row is gone."""
        raise NotImplementedError

    @abstractmethod
    async def count(self) -> int:
        raise NotImplementedError

    @abstractmethod
    async def list_ordered(self) -> list[UrgentTask]:
        """Return all rows ascending by order_index, then created_at."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_original_task(self, task_id: UUID) -> UrgentTask | None:
        raise NotImplementedError

    @abstractmethod
    async def bulk_update_order(
        self,
        positions: Sequence[tuple[UUID, int]],
        *,
        updates: Mapping[UUID, Mapping[str, object]] | None = None,
        delete_id: UUID | None = None,
    ) -> None:
        """Write every (id, order_index) pair as one all-or-nothing operation.

        `delete_id` is removed and each entry of `updates` is applied in the
        same transaction, so a failure leaves every row as it was.
        """
        raise NotImplementedError


class TaskStore(ABC):
    @abstractmethod
    async def create(self, task: Task) -> Task:
        raise NotImplementedError

    @abstractmethod
    async def get(self, task_id: UUID) -> Task | None:
        raise NotImplementedError

    @abstractmethod
    async def update(self, task_id: UUID, fields: Mapping[str, object]) -> Task | None:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, task_id: UUID) -> bool:
        raise NotImplementedError
