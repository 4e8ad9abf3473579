"""Task API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.api.common import (
    get_default_rate_limit,
    limiter,
    page_size_param,
    task_filters,
    task_sorting,
    validation_http_error,
)
from taskhub.database import get_db
from taskhub.models import TrashedMode
from taskhub.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskListResponse,
    TaskFilters,
    TaskSorting,
    TaskLookupItem,
    TaskStatistics,
)
from taskhub.services.errors import TaskValidationError
from taskhub.services.task_query import TaskQueryService
from taskhub.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    filters: TaskFilters = Depends(task_filters),
    sorting: TaskSorting = Depends(task_sorting),
    page: int = Query(1, ge=1),
    page_size: int = Depends(page_size_param),
    db: AsyncSession = Depends(get_db),
):
    """List tasks with optional filtering and sorting."""
    service = TaskQueryService(db)
    tasks, total = await service.get_all_tasks(
        filters, sorting, page=page, page_size=page_size
    )
    return TaskListResponse(
        items=[TaskResponse.model_validate(t) for t in tasks],
        total=total,
        page=page,
        page_size=page_size,
        filters=filters,
        sorting=sorting,
    )


@router.get("/statistics", response_model=TaskStatistics)
async def task_statistics(
    db: AsyncSession = Depends(get_db),
):
    """Live task counts by status, plus overdue."""
    service = TaskQueryService(db)
    return await service.get_task_statistics()


@router.get("/lookup", response_model=list[TaskLookupItem])
async def lookup_tasks(
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Recent tasks for quick search widgets."""
    service = TaskQueryService(db)
    tasks = await service.list_all_light(search)
    return [TaskLookupItem.model_validate(t) for t in tasks]


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_default_rate_limit)
async def create_task(
    request: Request,
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new task."""
    service = TaskService(db)
    try:
        task = await service.create(data)
    except TaskValidationError as e:
        raise validation_http_error(e)
    return TaskResponse.model_validate(task)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    trashed: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Get a single task by ID."""
    service = TaskQueryService(db)
    task = await service.get_task_by_id(task_id, trashed=TrashedMode.parse(trashed))
    if not task:
        raise _not_found()
    return TaskResponse.model_validate(task)


async def _update_task_impl(
    task_id: int,
    data: TaskUpdate,
    db: AsyncSession,
) -> TaskResponse:
    """Shared implementation for PUT and PATCH task updates."""
    service = TaskService(db)
    try:
        task = await service.update(task_id, data)
    except TaskValidationError as e:
        raise validation_http_error(e)
    if not task:
        raise _not_found()
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
@limiter.limit(get_default_rate_limit)
async def update_task(
    request: Request,
    task_id: int,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a task."""
    return await _update_task_impl(task_id, data, db)


@router.patch("/{task_id}", response_model=TaskResponse)
@limiter.limit(get_default_rate_limit)
async def patch_task(
    request: Request,
    task_id: int,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a task (only specified fields are modified)."""
    return await _update_task_impl(task_id, data, db)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(get_default_rate_limit)
async def delete_task(
    request: Request,
    task_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Move a task to the trash."""
    service = TaskService(db)
    deleted = await service.delete(task_id)
    if not deleted:
        raise _not_found()


@router.post("/{task_id}/restore", response_model=TaskResponse)
@limiter.limit(get_default_rate_limit)
async def restore_task(
    request: Request,
    task_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Restore a task from the trash."""
    service = TaskService(db)
    task = await service.restore(task_id)
    if not task:
        raise _not_found()
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}/force", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(get_default_rate_limit)
async def force_delete_task(
    request: Request,
    task_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a task that is already in the trash."""
    service = TaskService(db)
    deleted = await service.force_delete(task_id)
    if not deleted:
        raise _not_found()
