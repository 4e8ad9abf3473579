"""Task model - the core entity of TaskHub."""

from datetime import date, datetime, timezone

from sqlalchemy import Integer, String, Text, Date, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskhub.models.base import Base, SoftDeleteMixin
from taskhub.models.enums import TaskPriority, TaskStatus


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class Task(SoftDeleteMixin, Base):
    """A unit of work with status, priority and an optional due date."""

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(
            TaskStatus,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
            name="task_status",
        ),
        default=TaskStatus.PENDING,
        nullable=False,
        index=True,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(
            TaskPriority,
            native_enum=False,
            length=20,
            values_callable=_enum_values,
            name="task_priority",
        ),
        default=TaskPriority.MEDIUM,
        nullable=False,
        index=True,
    )
    due_date: Mapped[date | None] = mapped_column(Date, index=True)

    # Foreign keys
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    category: Mapped["Category | None"] = relationship(  # noqa: F821
        back_populates="tasks",
    )

    @property
    def is_overdue(self) -> bool:
        """Due before today and not yet completed."""
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        return self.due_date < date.today()

    def __repr__(self) -> str:
        return f"<Task(title={self.title!r}, status={self.status.value})>"
