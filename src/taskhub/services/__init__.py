"""Business logic services for TaskHub."""

from taskhub.services.category_service import CategoryService
from taskhub.services.task_query import TaskQueryService
from taskhub.services.task_service import TaskService

__all__ = ["CategoryService", "TaskQueryService", "TaskService"]
