"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from personal_crm.models.tasks import Task
from personal_crm.models.urgent_tasks import UrgentTask

__all__ = [
    "Task",
    "UrgentTask",
]
