"""Task status and priority enumerations."""

from enum import Enum


class TaskStatus(str, Enum):
    """Workflow state of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    """Importance of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Sort ranks; lexical order of the values does not match the intended order
STATUS_RANK: dict[TaskStatus, int] = {
    TaskStatus.PENDING: 1,
    TaskStatus.IN_PROGRESS: 2,
    TaskStatus.COMPLETED: 3,
}

PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}
