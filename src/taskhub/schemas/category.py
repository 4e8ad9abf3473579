"""Category schemas."""

from pydantic import Field

from taskhub.schemas.base import BaseSchema, TimestampMixin


class CategoryCreate(BaseSchema):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=255)
    parent_id: int | None = None


class CategoryUpdate(BaseSchema):
    """Schema for updating a category.

    Only fields present in the payload are applied; an explicit
    ``parent_id: null`` moves the category to the root level.
    """

    name: str | None = Field(None, min_length=1, max_length=255)
    parent_id: int | None = None


class CategorySummary(BaseSchema):
    """Compact category reference used inside other payloads."""

    id: int
    name: str
    parent_id: int | None = None


class CategoryResponse(TimestampMixin, BaseSchema):
    """Schema for category responses."""

    id: int
    name: str
    parent_id: int | None
    parent_name: str | None = None
    children: list[CategorySummary] = Field(
        default_factory=list,
        validation_alias="active_children",
    )


class CategoryStatsRow(BaseSchema):
    """Task counts for one category, broken down by status."""

    id: int
    name: str
    parent_id: int | None
    tasks_total_count: int = 0
    tasks_pending_count: int = 0
    tasks_in_progress_count: int = 0
    tasks_completed_count: int = 0


class CategoryStatsTotals(BaseSchema):
    """Column-wise sums across all category rows."""

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class CategoryStatisticsResponse(BaseSchema):
    """Schema for the category statistics endpoint."""

    stats: list[CategoryStatsRow]
    totals: CategoryStatsTotals
