"""Business logic for task mutations."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.events import ChangeAction, change_dispatcher
from taskhub.models import Category, Task, TaskStatus, TrashedMode
from taskhub.schemas.task import TaskCreate, TaskUpdate
from taskhub.services.errors import TaskValidationError
from taskhub.services.task_query import TaskQueryService

logger = logging.getLogger(__name__)

INVALID_CATEGORY = "Selected category is invalid."


class TaskService:
    """Service for task CRUD operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.queries = TaskQueryService(db)

    async def get_by_id(
        self,
        task_id: int,
        trashed: TrashedMode = TrashedMode.DEFAULT,
    ) -> Task | None:
        """Get a single task by ID with its category."""
        return await self.queries.get_task_by_id(task_id, trashed=trashed)

    async def create(self, data: TaskCreate) -> Task:
        """Create a new task."""
        await self._validate_category(data.category_id)

        task = Task(
            title=data.title,
            description=data.description,
            status=data.status,
            priority=data.priority,
            due_date=data.due_date,
            category_id=data.category_id,
        )
        self.db.add(task)
        await self.db.flush()
        change_dispatcher.record(self.db, "task", ChangeAction.CREATED, task.id)
        logger.info("Created task %s (%r)", task.id, task.title)

        # Reload with all relationships
        return await self.get_by_id(task.id)

    async def update(self, task_id: int, data: TaskUpdate) -> Task | None:
        """Update a task with the fields present in ``data``."""
        task = await self.get_by_id(task_id)
        if not task:
            return None

        update_data = data.model_dump(exclude_unset=True)

        # Required columns cannot be cleared
        for key in ("title", "status", "priority"):
            if key in update_data and update_data[key] is None:
                del update_data[key]

        if "category_id" in update_data:
            await self._validate_category(update_data["category_id"])

        for key, value in update_data.items():
            setattr(task, key, value)

        task.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        change_dispatcher.record(self.db, "task", ChangeAction.UPDATED, task.id)
        logger.info("Updated task %s", task.id)

        # Reload with all relationships
        return await self.get_by_id(task_id)

    async def delete(self, task_id: int) -> bool:
        """Soft-delete a task."""
        task = await self.get_by_id(task_id)
        if not task:
            return False
        task.soft_delete()
        await self.db.flush()
        change_dispatcher.record(self.db, "task", ChangeAction.DELETED, task.id)
        logger.info("Soft-deleted task %s", task.id)
        return True

    async def restore(self, task_id: int) -> Task | None:
        """Restore a soft-deleted task; None if it is not in the trash."""
        task = await self.get_by_id(task_id, trashed=TrashedMode.ONLY_TRASHED)
        if not task:
            return None
        task.restore()
        await self.db.flush()
        change_dispatcher.record(self.db, "task", ChangeAction.RESTORED, task.id)
        logger.info("Restored task %s", task.id)
        return await self.get_by_id(task_id)

    async def force_delete(self, task_id: int) -> bool:
        """Permanently remove a soft-deleted task."""
        task = await self.get_by_id(task_id, trashed=TrashedMode.ONLY_TRASHED)
        if not task:
            return False
        await self.db.execute(delete(Task).where(Task.id == task_id))
        await self.db.flush()
        change_dispatcher.record(self.db, "task", ChangeAction.FORCE_DELETED, task_id)
        logger.info("Permanently deleted task %s", task_id)
        return True

    async def mark_complete(self, task_id: int) -> Task | None:
        """Shortcut for setting a task's status to completed."""
        return await self.update(task_id, TaskUpdate(status=TaskStatus.COMPLETED))

    async def _validate_category(self, category_id: int | None) -> None:
        if category_id is None:
            return
        exists = (
            await self.db.execute(
                select(Category.id)
                .where(Category.id == category_id)
                .where(Category.deleted_at.is_(None))
            )
        ).scalar_one_or_none()
        if exists is None:
            raise TaskValidationError("category_id", INVALID_CATEGORY)
