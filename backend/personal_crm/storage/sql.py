"""SQLModel/SQLAlchemy implementations of the repository interfaces."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from personal_crm.core.logging import get_logger
from personal_crm.core.time import utcnow
from personal_crm.models.tasks import Task
from personal_crm.models.urgent_tasks import UrgentTask
from personal_crm.services.errors import StoreError
from personal_crm.storage.interfaces import TaskStore, UrgentTaskStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping, Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)


@asynccontextmanager
async def _store_call(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Translate driver failures into StoreError after rolling back."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("store.call.failed", extra={"operation": operation, "error": str(exc)})
        try:
            await session.rollback()
        except SQLAlchemyError:
            logger.exception("Failed to rollback session after store error.")
        raise StoreError(f"{operation} failed") from exc


class SqlUrgentTaskStore(UrgentTaskStore):
    """Urgent task repository backed by the `urgent_tasks` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, task: UrgentTask) -> UrgentTask:
        async with _store_call(self._session, "urgent_tasks.create"):
            self._session.add(task)
            await self._session.commit()
            await self._session.refresh(task)
        return task

    async def get(self, urgent_task_id: UUID) -> UrgentTask | None:
        async with _store_call(self._session, "urgent_tasks.get"):
            statement = (
                select(UrgentTask)
                .where(col(UrgentTask.id) == urgent_task_id)
                .execution_options(populate_existing=True)
            )
            return (await self._session.exec(statement)).first()

    async def update(
        self,
        urgent_task_id: UUID,
        fields: Mapping[str, object],
    ) -> UrgentTask | None:
        task = await self.get(urgent_task_id)
        if task is None:
            return None
        async with _store_call(self._session, "urgent_tasks.update"):
            for key, value in fields.items():
                setattr(task, key, value)
            task.updated_at = utcnow()
            self._session.add(task)
            await self._session.commit()
            await self._session.refresh(task)
        return task

    async def count(self) -> int:
        async with _store_call(self._session, "urgent_tasks.count"):
            statement = select(func.count()).select_from(UrgentTask)
            return int((await self._session.exec(statement)).one())

    async def list_ordered(self) -> list[UrgentTask]:
        async with _store_call(self._session, "urgent_tasks.list"):
            statement = (
                select(UrgentTask)
                .order_by(
                    col(UrgentTask.order_index).asc(),
                    col(UrgentTask.created_at).asc(),
                    col(UrgentTask.id).asc(),
                )
                .execution_options(populate_existing=True)
            )
            return list(await self._session.exec(statement))

    async def find_by_original_task(self, task_id: UUID) -> UrgentTask | None:
        async with _store_call(self._session, "urgent_tasks.find_by_original_task"):
            statement = select(UrgentTask).where(col(UrgentTask.original_task_id) == task_id)
            return (await self._session.exec(statement)).first()

    async def bulk_update_order(
        self,
        positions: Sequence[tuple[UUID, int]],
        *,
        updates: Mapping[UUID, Mapping[str, object]] | None = None,
        delete_id: UUID | None = None,
    ) -> None:
        if not positions and not updates and delete_id is None:
            return
        ids = [task_id for task_id, _ in positions]
        now = utcnow()
        async with _store_call(self._session, "urgent_tasks.bulk_update_order"):
            if delete_id is not None:
                await self._session.execute(
                    delete(UrgentTask)
                    .where(col(UrgentTask.id) == delete_id)
                    .execution_options(synchronize_session=False),
                )
            for task_id, fields in (updates or {}).items():
                await self._session.execute(
                    update(UrgentTask)
                    .where(col(UrgentTask.id) == task_id)
                    .values(**fields, updated_at=now)
                    .execution_options(synchronize_session=False),
                )
            if ids:
                # Park the affected rows on distinct negative indices first so the
                # unique index on order_index never sees two rows on one position.
                await self._session.execute(
                    update(UrgentTask)
                    .where(col(UrgentTask.id).in_(ids))
                    .values(order_index=-col(UrgentTask.order_index) - 1)
                    .execution_options(synchronize_session=False),
                )
            for task_id, order_index in positions:
                await self._session.execute(
                    update(UrgentTask)
                    .where(col(UrgentTask.id) == task_id)
                    .values(order_index=order_index, updated_at=now)
                    .execution_options(synchronize_session=False),
                )
            await self._session.commit()


class SqlTaskStore(TaskStore):
    """Backlog task repository backed by the `personal_tasks` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, task: Task) -> Task:
        async with _store_call(self._session, "tasks.create"):
            self._session.add(task)
            await self._session.commit()
            await self._session.refresh(task)
        return task

    async def get(self, task_id: UUID) -> Task | None:
        async with _store_call(self._session, "tasks.get"):
            statement = (
                select(Task)
                .where(col(Task.id) == task_id)
                .execution_options(populate_existing=True)
            )
            return (await self._session.exec(statement)).first()

    async def update(self, task_id: UUID, fields: Mapping[str, object]) -> Task | None:
        task = await self.get(task_id)
        if task is None:
            return None
        async with _store_call(self._session, "tasks.update"):
            for key, value in fields.items():
                setattr(task, key, value)
            task.updated_at = utcnow()
            self._session.add(task)
            await self._session.commit()
            await self._session.refresh(task)
        return task

    async def delete(self, task_id: UUID) -> bool:
        task = await self.get(task_id)
        if task is None:
            return False
        async with _store_call(self._session, "tasks.delete"):
            await self._session.delete(task)
            await self._session.commit()
        return True
