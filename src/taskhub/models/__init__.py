"""SQLAlchemy models for TaskHub."""

from taskhub.models.base import Base, SoftDeleteMixin, TrashedMode
from taskhub.models.enums import (
    PRIORITY_RANK,
    STATUS_RANK,
    TaskPriority,
    TaskStatus,
)
from taskhub.models.category import Category
from taskhub.models.task import Task

__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TrashedMode",
    "TaskStatus",
    "TaskPriority",
    "STATUS_RANK",
    "PRIORITY_RANK",
    "Category",
    "Task",
]
