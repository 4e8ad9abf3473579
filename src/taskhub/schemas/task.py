"""Task schemas."""

from datetime import date

from pydantic import Field, field_validator

from taskhub.models import TaskPriority, TaskStatus, TrashedMode
from taskhub.schemas.base import BaseSchema, TimestampMixin, blank_to_none
from taskhub.schemas.category import CategorySummary

SORTABLE_FIELDS = ("created_at", "due_date", "priority", "status", "title")
DEFAULT_SORT_BY = "created_at"
DEFAULT_SORT_DIR = "desc"


class TaskCreate(BaseSchema):
    """Schema for creating a task."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None = None
    category_id: int | None = None


class TaskUpdate(BaseSchema):
    """Schema for updating a task."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    category_id: int | None = None


class TaskResponse(TimestampMixin, BaseSchema):
    """Schema for task responses."""

    id: int
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None
    is_overdue: bool = False
    category_id: int | None
    category: CategorySummary | None = None


class TaskFilters(BaseSchema):
    """Optional task filters; every filter that is set must match."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category_id: int | None = None
    search: str | None = None
    due_from: date | None = None
    due_to: date | None = None
    trashed: TrashedMode = TrashedMode.DEFAULT

    @field_validator(
        "status", "priority", "category_id", "search", "due_from", "due_to",
        mode="before",
    )
    @classmethod
    def _blank_is_absent(cls, value):
        return blank_to_none(value)

    @field_validator("search")
    @classmethod
    def _strip_search(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("trashed", mode="before")
    @classmethod
    def _parse_trashed(cls, value) -> TrashedMode:
        return TrashedMode.parse(value)


class TaskSorting(BaseSchema):
    """Sort column and direction; invalid input falls back to the defaults."""

    sort_by: str = DEFAULT_SORT_BY
    sort_dir: str = DEFAULT_SORT_DIR

    @field_validator("sort_by", mode="before")
    @classmethod
    def _allowed_column(cls, value) -> str:
        if isinstance(value, str) and value in SORTABLE_FIELDS:
            return value
        return DEFAULT_SORT_BY

    @field_validator("sort_dir", mode="before")
    @classmethod
    def _normalize_direction(cls, value) -> str:
        if isinstance(value, str) and value.strip().lower() == "asc":
            return "asc"
        return "desc"


class TaskListResponse(BaseSchema):
    """Schema for paginated task list responses."""

    items: list[TaskResponse]
    total: int
    page: int = 1
    page_size: int = 10
    filters: TaskFilters = Field(default_factory=TaskFilters)
    sorting: TaskSorting = Field(default_factory=TaskSorting)


class TaskLookupItem(BaseSchema):
    """Lightweight task row for pickers and quick search."""

    id: int
    title: str
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None
    category_id: int | None


class TaskStatistics(BaseSchema):
    """Live task counts."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0
