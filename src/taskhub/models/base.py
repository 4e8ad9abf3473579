"""Declarative base and soft-delete support shared by all models."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, Select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for TaskHub models."""


class SoftDeleteMixin:
    """Adds a nullable ``deleted_at`` marker to a model.

    A row with ``deleted_at`` set is "trashed": hidden from default queries
    but recoverable through :meth:`restore`.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        index=True,
    )

    @property
    def trashed(self) -> bool:
        """Whether the row is currently soft-deleted."""
        return self.deleted_at is not None

    def soft_delete(self) -> None:
        """Mark the row as deleted without removing it."""
        self.deleted_at = datetime.now(timezone.utc)

    def restore(self) -> None:
        """Clear the soft-delete marker."""
        self.deleted_at = None


class TrashedMode(str, Enum):
    """Soft-delete visibility policy applied to a query."""

    DEFAULT = "default"
    WITH_TRASHED = "with_trashed"
    ONLY_TRASHED = "only_trashed"

    @classmethod
    def parse(cls, value: "str | TrashedMode | None") -> "TrashedMode":
        """Parse a raw value, treating empty or unknown input as DEFAULT."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DEFAULT

    def apply(self, stmt: Select, model: type[SoftDeleteMixin]) -> Select:
        """Restrict ``stmt`` to the rows of ``model`` this mode makes visible."""
        if self is TrashedMode.WITH_TRASHED:
            return stmt
        if self is TrashedMode.ONLY_TRASHED:
            return stmt.where(model.deleted_at.is_not(None))
        return stmt.where(model.deleted_at.is_(None))
