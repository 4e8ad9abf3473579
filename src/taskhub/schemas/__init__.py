"""Pydantic schemas for TaskHub API."""

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
from taskhub.schemas.category import (
    CategoryCreate,
    CategoryUpdate,
    CategoryResponse,
    CategorySummary,
    CategoryStatsRow,
    CategoryStatsTotals,
    CategoryStatisticsResponse,
)

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "TaskListResponse",
    "TaskFilters",
    "TaskSorting",
    "TaskLookupItem",
    "TaskStatistics",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategorySummary",
    "CategoryStatsRow",
    "CategoryStatsTotals",
    "CategoryStatisticsResponse",
]
