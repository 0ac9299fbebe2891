"""Reusable FastAPI dependencies wiring request sessions into services.

Routes never build stores themselves; they depend on the service providers
below so tests can override a single dependency.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends

from personal_crm.db.session import get_session
from personal_crm.services.tasks import TaskService
from personal_crm.services.urgent_tasks import UrgentTaskService
from personal_crm.storage.sql import SqlTaskStore, SqlUrgentTaskStore

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

SESSION_DEP = Depends(get_session)


def get_urgent_task_service(session: AsyncSession = SESSION_DEP) -> UrgentTaskService:
    """Build the urgent task engine over request-scoped SQL stores."""
    return UrgentTaskService(SqlUrgentTaskStore(session), SqlTaskStore(session))


def get_task_service(session: AsyncSession = SESSION_DEP) -> TaskService:
    """Build the backlog task service over a request-scoped SQL store."""
    return TaskService(SqlTaskStore(session))
