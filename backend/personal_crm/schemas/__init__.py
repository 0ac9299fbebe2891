"""Public schema exports shared across API route modules."""

from personal_crm.schemas.common import OkResponse
from personal_crm.schemas.errors import ErrorResponse
from personal_crm.schemas.health import HealthStatusResponse
from personal_crm.schemas.tasks import TaskCreate, TaskRead, TaskUpdate
from personal_crm.schemas.urgent_tasks import (
    UrgentTaskCreate,
    UrgentTaskPromote,
    UrgentTaskRead,
    UrgentTaskReorder,
    UrgentTaskUpdate,
)

__all__ = [
    "ErrorResponse",
    "HealthStatusResponse",
    "OkResponse",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "UrgentTaskCreate",
    "UrgentTaskPromote",
    "UrgentTaskRead",
    "UrgentTaskReorder",
    "UrgentTaskUpdate",
]
