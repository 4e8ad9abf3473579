"""Business logic for the category hierarchy."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select, update, delete, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.events import ChangeAction, change_dispatcher
from taskhub.models import Category, Task, TaskStatus, TrashedMode
from taskhub.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryStatsRow,
    CategoryStatsTotals,
)
from taskhub.services.cache import CategoryStatsCache
from taskhub.services.errors import CategoryHierarchyError

logger = logging.getLogger(__name__)

INVALID_PARENT = "Selected parent category is invalid."
MAX_DEPTH = "Category hierarchy allows at most 2 levels."
SELF_PARENT = "A category cannot be its own parent."
CYCLE = "Cycle detected: the parent cannot be a child of this category."
HAS_CHILDREN = "A category that has children cannot be placed under another category."


class CategoryService:
    """Service for category operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_relations(self, stmt):
        return stmt.options(
            selectinload(Category.parent),
            selectinload(Category.children),
        )

    async def get_root_categories(self) -> list[Category]:
        """Get non-deleted categories that have no parent."""
        query = self._with_relations(
            select(Category)
            .where(Category.parent_id.is_(None))
            .where(Category.deleted_at.is_(None))
            .order_by(Category.name)
        )
        result = await self.db.execute(query)
        return list(result.scalars())

    async def get_all(self, trashed: TrashedMode = TrashedMode.DEFAULT) -> list[Category]:
        """Get categories with parent and children loaded."""
        query = self._with_relations(select(Category).order_by(Category.name))
        query = trashed.apply(query, Category)
        result = await self.db.execute(query)
        return list(result.scalars())

    async def get_tree(self) -> list[Category]:
        """Get root categories with their children populated."""
        return await self.get_root_categories()

    async def get_by_id(
        self,
        category_id: int,
        trashed: TrashedMode = TrashedMode.DEFAULT,
    ) -> Category | None:
        """Get a category by ID with parent and children loaded."""
        query = self._with_relations(
            select(Category).where(Category.id == category_id)
        ).execution_options(populate_existing=True)
        query = trashed.apply(query, Category)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create(self, data: CategoryCreate) -> Category:
        """Create a new category."""
        await self._validate_parent_depth(data.parent_id)

        category = Category(name=data.name, parent_id=data.parent_id)
        self.db.add(category)
        await self.db.flush()
        change_dispatcher.record(self.db, "category", ChangeAction.CREATED, category.id)
        logger.info("Created category %s (%r)", category.id, category.name)

        # Reload with all relationships
        return await self.get_by_id(category.id)

    async def update(self, category_id: int, data: CategoryUpdate) -> Category | None:
        """Update a category, re-checking the hierarchy if the parent changes."""
        category = await self.get_by_id(category_id)
        if not category:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("name") is None:
            update_data.pop("name", None)

        if "parent_id" in update_data:
            parent_id = update_data["parent_id"]
            if parent_id is not None and parent_id == category.id:
                raise CategoryHierarchyError("parent_id", SELF_PARENT)
            await self._validate_no_cycle(category, parent_id)
            await self._validate_parent_depth(parent_id)
            await self._validate_leaf(category, parent_id)

        for key, value in update_data.items():
            setattr(category, key, value)

        category.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        change_dispatcher.record(self.db, "category", ChangeAction.UPDATED, category.id)
        logger.info("Updated category %s", category.id)

        # Reload with all relationships
        return await self.get_by_id(category_id)

    async def delete(self, category_id: int) -> bool:
        """Soft-delete a category.

        Children and tasks keep their references to it.
        """
        category = await self.get_by_id(category_id)
        if not category:
            return False
        category.soft_delete()
        await self.db.flush()
        change_dispatcher.record(self.db, "category", ChangeAction.DELETED, category.id)
        logger.info("Soft-deleted category %s", category.id)
        return True

    async def restore(self, category_id: int) -> Category | None:
        """Restore a soft-deleted category."""
        category = await self.get_by_id(category_id, trashed=TrashedMode.ONLY_TRASHED)
        if not category:
            return None
        category.restore()
        await self.db.flush()
        change_dispatcher.record(self.db, "category", ChangeAction.RESTORED, category.id)
        logger.info("Restored category %s", category.id)
        return await self.get_by_id(category_id)

    async def force_delete(self, category_id: int) -> bool:
        """Permanently remove a soft-deleted category.

        Tasks referencing it lose their category and its children become
        root categories.
        """
        category = await self.get_by_id(category_id, trashed=TrashedMode.ONLY_TRASHED)
        if not category:
            return False

        await self.db.execute(
            update(Task).where(Task.category_id == category_id).values(category_id=None)
        )
        await self.db.execute(
            update(Category).where(Category.parent_id == category_id).values(parent_id=None)
        )
        await self.db.execute(delete(Category).where(Category.id == category_id))
        await self.db.flush()
        change_dispatcher.record(
            self.db, "category", ChangeAction.FORCE_DELETED, category_id
        )
        logger.info("Permanently deleted category %s", category_id)
        return True

    async def get_statistics(self) -> tuple[list[CategoryStatsRow], CategoryStatsTotals]:
        """Per-category task counts by status plus totals, served from cache."""
        return await CategoryStatsCache.remember(self._compute_statistics)

    async def _compute_statistics(self) -> tuple[list[CategoryStatsRow], CategoryStatsTotals]:
        def count_status(status: TaskStatus):
            return func.count(case((Task.status == status, Task.id)))

        query = (
            select(
                Category.id,
                Category.name,
                Category.parent_id,
                func.count(Task.id).label("tasks_total_count"),
                count_status(TaskStatus.PENDING).label("tasks_pending_count"),
                count_status(TaskStatus.IN_PROGRESS).label("tasks_in_progress_count"),
                count_status(TaskStatus.COMPLETED).label("tasks_completed_count"),
            )
            .outerjoin(
                Task,
                (Task.category_id == Category.id) & Task.deleted_at.is_(None),
            )
            .where(Category.deleted_at.is_(None))
            .group_by(Category.id, Category.name, Category.parent_id)
            .order_by(Category.name)
        )
        result = await self.db.execute(query)
        rows = [CategoryStatsRow.model_validate(row) for row in result.all()]

        totals = CategoryStatsTotals(
            total=sum(r.tasks_total_count for r in rows),
            pending=sum(r.tasks_pending_count for r in rows),
            in_progress=sum(r.tasks_in_progress_count for r in rows),
            completed=sum(r.tasks_completed_count for r in rows),
        )
        return rows, totals

    async def _validate_parent_depth(self, parent_id: int | None) -> None:
        """The prospective parent must exist and be a root category."""
        if parent_id is None:
            return

        parent = (
            await self.db.execute(
                select(Category)
                .where(Category.id == parent_id)
                .where(Category.deleted_at.is_(None))
            )
        ).scalar_one_or_none()
        if parent is None:
            raise CategoryHierarchyError("parent_id", INVALID_PARENT)

        if parent.parent_id is not None:
            raise CategoryHierarchyError("parent_id", MAX_DEPTH)

    async def _validate_no_cycle(self, category: Category, parent_id: int | None) -> None:
        """The prospective parent must not be a direct child of ``category``."""
        if parent_id is None:
            return

        child_ids = await self._child_ids(category.id)
        if parent_id in child_ids:
            raise CategoryHierarchyError("parent_id", CYCLE)

    async def _validate_leaf(self, category: Category, parent_id: int | None) -> None:
        """A category with children would push them to a third level."""
        if parent_id is None:
            return

        if await self._child_ids(category.id):
            raise CategoryHierarchyError("parent_id", HAS_CHILDREN)

    async def _child_ids(self, category_id: int) -> list[int]:
        # Soft-deleted children count: restoring them must not break the tree
        result = await self.db.execute(
            select(Category.id).where(Category.parent_id == category_id)
        )
        return list(result.scalars())
