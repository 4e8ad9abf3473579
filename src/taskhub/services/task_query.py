"""Read-side task queries: filtering, sorting, pagination and statistics."""

from datetime import date

from sqlalchemy import Select, select, func, case, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from taskhub.models import Task, TaskStatus, TrashedMode, PRIORITY_RANK, STATUS_RANK
from taskhub.schemas.task import TaskFilters, TaskSorting, TaskStatistics

LOOKUP_LIMIT = 50

# Rank used for values outside the known enum members
_UNRANKED = 4


def apply_filters(query: Select, filters: TaskFilters) -> Select:
    """Narrow ``query`` by every filter that is set."""
    if filters.status:
        query = query.where(Task.status == filters.status)
    if filters.priority:
        query = query.where(Task.priority == filters.priority)
    if filters.category_id:
        query = query.where(Task.category_id == filters.category_id)
    if filters.search:
        term = f"%{filters.search}%"
        query = query.where(
            or_(Task.title.ilike(term), Task.description.ilike(term))
        )
    if filters.due_from:
        query = query.where(Task.due_date >= filters.due_from)
    if filters.due_to:
        query = query.where(Task.due_date <= filters.due_to)
    return query


def apply_sorting(query: Select, sorting: TaskSorting) -> Select:
    """Order ``query`` by the requested column, then by id descending."""
    if sorting.sort_by == "priority":
        column = case(PRIORITY_RANK, value=Task.priority, else_=_UNRANKED)
    elif sorting.sort_by == "status":
        column = case(STATUS_RANK, value=Task.status, else_=_UNRANKED)
    else:
        column = getattr(Task, sorting.sort_by)

    ordered = column.asc() if sorting.sort_dir == "asc" else column.desc()
    return query.order_by(ordered, Task.id.desc())


class TaskQueryService:
    """Service for listing and counting tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all_tasks(
        self,
        filters: TaskFilters | None = None,
        sorting: TaskSorting | None = None,
        *,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Task], int]:
        """Get a page of tasks matching ``filters`` ordered by ``sorting``."""
        filters = filters or TaskFilters()
        sorting = sorting or TaskSorting()

        query = select(Task).options(selectinload(Task.category))
        query = filters.trashed.apply(query, Task)
        query = apply_filters(query, filters)

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Paginate and order
        page = max(page, 1)
        query = (
            apply_sorting(query, sorting)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )

        result = await self.db.execute(query)
        return list(result.scalars()), total

    async def get_task_by_id(
        self,
        task_id: int,
        trashed: TrashedMode = TrashedMode.DEFAULT,
    ) -> Task | None:
        """Get a single task by ID with its category loaded."""
        query = (
            select(Task)
            .options(selectinload(Task.category))
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        query = trashed.apply(query, Task)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_tasks_by_category(
        self,
        category_id: int,
        filters: TaskFilters | None = None,
        sorting: TaskSorting | None = None,
        *,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Task], int]:
        """Get a page of tasks that belong to ``category_id``."""
        filters = (filters or TaskFilters()).model_copy(
            update={"category_id": category_id}
        )
        return await self.get_all_tasks(
            filters, sorting, page=page, page_size=page_size
        )

    async def list_all_light(self, search: str | None = None) -> list[Task]:
        """Most recent tasks, optionally matching ``search``, for quick lookups."""
        query = select(Task).where(Task.deleted_at.is_(None))
        query = apply_filters(query, TaskFilters(search=search))
        query = query.order_by(Task.created_at.desc(), Task.id.desc()).limit(LOOKUP_LIMIT)
        result = await self.db.execute(query)
        return list(result.scalars())

    async def get_task_statistics(self) -> TaskStatistics:
        """Count live (non-deleted) tasks by status, plus overdue ones.

        Always computed fresh.
        """
        def count_where(condition):
            return func.count(case((condition, Task.id)))

        overdue = (
            Task.due_date.is_not(None)
            & (Task.due_date < date.today())
            & (Task.status != TaskStatus.COMPLETED)
        )
        query = select(
            func.count(Task.id).label("total"),
            count_where(Task.status == TaskStatus.PENDING).label("pending"),
            count_where(Task.status == TaskStatus.IN_PROGRESS).label("in_progress"),
            count_where(Task.status == TaskStatus.COMPLETED).label("completed"),
            count_where(overdue).label("overdue"),
        ).where(Task.deleted_at.is_(None))

        row = (await self.db.execute(query)).one()
        return TaskStatistics.model_validate(row)
