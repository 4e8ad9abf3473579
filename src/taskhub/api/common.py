"""Shared pieces for the API routers: rate limiting, query parsing, errors."""

from fastapi import HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from taskhub.config import get_settings
from taskhub.schemas.task import TaskFilters, TaskSorting
from taskhub.services.errors import EntityValidationError

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)


def get_default_rate_limit() -> str:
    """Get the default rate limit from settings."""
    return get_settings().rate_limit_default


def validation_http_error(error: EntityValidationError) -> HTTPException:
    """Translate a service validation error into a field-scoped 422."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=error.as_dict(),
    )


def task_filters(
    status: str | None = None,
    priority: str | None = None,
    category_id: str | None = None,
    search: str | None = None,
    due_from: str | None = None,
    due_to: str | None = None,
    trashed: str | None = None,
) -> TaskFilters:
    """Build task filters from raw query parameters.

    Blank values are ignored and an unknown ``trashed`` mode falls back to
    the default; malformed values produce a regular 422.
    """
    try:
        return TaskFilters.model_validate(
            {
                "status": status,
                "priority": priority,
                "category_id": category_id,
                "search": search,
                "due_from": due_from,
                "due_to": due_to,
                "trashed": trashed,
            }
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))


def task_sorting(
    sort_by: str | None = None,
    sort_dir: str | None = None,
) -> TaskSorting:
    """Build sorting options; invalid values fall back to the defaults."""
    return TaskSorting.model_validate({"sort_by": sort_by, "sort_dir": sort_dir})


def page_size_param(page_size: int | None = Query(None, ge=1)) -> int:
    """Resolve the page size, capped by settings."""
    settings = get_settings()
    if page_size is None:
        return settings.default_page_size
    return min(page_size, settings.max_page_size)
