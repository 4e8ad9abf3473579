"""Base schemas and utilities."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class TimestampMixin(BaseModel):
    """Mixin for models with timestamps and a soft-delete marker."""

    created_at: datetime
    updated_at: datetime | None = None
    deleted_at: datetime | None = None


def blank_to_none(value):
    """Treat empty or whitespace-only strings from query strings as absent."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
