"""Category API endpoints."""

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
from taskhub.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategoryStatisticsResponse,
)
from taskhub.schemas.task import TaskFilters, TaskListResponse, TaskResponse, TaskSorting
from taskhub.services.category_service import CategoryService
from taskhub.services.errors import CategoryHierarchyError
from taskhub.services.task_query import TaskQueryService

router = APIRouter(prefix="/categories", tags=["categories"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Category not found",
    )


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    tree: bool = False,
    trashed: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """List categories, flat or as a tree of roots with their children."""
    service = CategoryService(db)
    if tree:
        categories = await service.get_tree()
    else:
        categories = await service.get_all(TrashedMode.parse(trashed))
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/roots", response_model=list[CategoryResponse])
async def list_root_categories(
    db: AsyncSession = Depends(get_db),
):
    """List categories that can be chosen as a parent."""
    service = CategoryService(db)
    categories = await service.get_root_categories()
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/statistics", response_model=CategoryStatisticsResponse)
async def category_statistics(
    db: AsyncSession = Depends(get_db),
):
    """Task counts per category, by status, plus totals."""
    service = CategoryService(db)
    stats, totals = await service.get_statistics()
    return CategoryStatisticsResponse(stats=stats, totals=totals)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(get_default_rate_limit)
async def create_category(
    request: Request,
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
):
    """Create a new category."""
    service = CategoryService(db)
    try:
        category = await service.create(data)
    except CategoryHierarchyError as e:
        raise validation_http_error(e)
    return CategoryResponse.model_validate(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a category by ID."""
    service = CategoryService(db)
    category = await service.get_by_id(category_id)
    if not category:
        raise _not_found()
    return CategoryResponse.model_validate(category)


@router.get("/{category_id}/tasks", response_model=TaskListResponse)
async def list_category_tasks(
    category_id: int,
    filters: TaskFilters = Depends(task_filters),
    sorting: TaskSorting = Depends(task_sorting),
    page: int = Query(1, ge=1),
    page_size: int = Depends(page_size_param),
    db: AsyncSession = Depends(get_db),
):
    """List the tasks filed under a category."""
    if not await CategoryService(db).get_by_id(category_id):
        raise _not_found()

    service = TaskQueryService(db)
    tasks, total = await service.get_tasks_by_category(
        category_id, filters, sorting, page=page, page_size=page_size
    )
    return TaskListResponse(
        items=[TaskResponse.model_validate(t) for t in tasks],
        total=total,
        page=page,
        page_size=page_size,
        filters=filters.model_copy(update={"category_id": category_id}),
        sorting=sorting,
    )


async def _update_category_impl(
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession,
) -> CategoryResponse:
    """Shared implementation for PUT and PATCH category updates."""
    service = CategoryService(db)
    try:
        category = await service.update(category_id, data)
    except CategoryHierarchyError as e:
        raise validation_http_error(e)
    if not category:
        raise _not_found()
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
@limiter.limit(get_default_rate_limit)
async def update_category(
    request: Request,
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a category."""
    return await _update_category_impl(category_id, data, db)


@router.patch("/{category_id}", response_model=CategoryResponse)
@limiter.limit(get_default_rate_limit)
async def patch_category(
    request: Request,
    category_id: int,
    data: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a category."""
    return await _update_category_impl(category_id, data, db)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(get_default_rate_limit)
async def delete_category(
    request: Request,
    category_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Move a category to the trash."""
    service = CategoryService(db)
    deleted = await service.delete(category_id)
    if not deleted:
        raise _not_found()


@router.post("/{category_id}/restore", response_model=CategoryResponse)
@limiter.limit(get_default_rate_limit)
async def restore_category(
    request: Request,
    category_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Restore a category from the trash."""
    service = CategoryService(db)
    category = await service.restore(category_id)
    if not category:
        raise _not_found()
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}/force", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(get_default_rate_limit)
async def force_delete_category(
    request: Request,
    category_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a category that is already in the trash."""
    service = CategoryService(db)
    deleted = await service.force_delete(category_id)
    if not deleted:
        raise _not_found()
