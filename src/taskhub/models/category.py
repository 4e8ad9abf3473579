"""Category model with a two-level parent/child hierarchy."""

from datetime import datetime, timezone

from sqlalchemy import Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, SoftDeleteMixin


class Category(SoftDeleteMixin, Base):
    """Category for organizing tasks.

    A category either is a root (``parent_id`` is None) or hangs directly
    off a root. The service layer enforces the depth limit.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    parent: Mapped["Category | None"] = relationship(
        back_populates="children",
        remote_side=[id],
    )
    children: Mapped[list["Category"]] = relationship(
        back_populates="parent",
        order_by="Category.name",
    )
    tasks: Mapped[list["Task"]] = relationship(  # noqa: F821
        back_populates="category",
    )

    @property
    def parent_name(self) -> str | None:
        """Name of the parent category, if any."""
        return self.parent.name if self.parent is not None else None

    @property
    def active_children(self) -> list["Category"]:
        """Children that are not soft-deleted."""
        return [child for child in self.children if child.deleted_at is None]

    def __repr__(self) -> str:
        return f"<Category(name={self.name!r}, parent_id={self.parent_id})>"
