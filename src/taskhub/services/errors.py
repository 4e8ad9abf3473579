"""Errors raised by the service layer."""


class EntityValidationError(Exception):
    """Input that violates a domain rule.

    Carries the offending field so callers can attach the message to it.
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message

    def as_dict(self) -> dict[str, list[str]]:
        """Field-scoped error mapping."""
        return {self.field: [self.message]}


class CategoryHierarchyError(EntityValidationError):
    """A parent assignment would break the category tree rules."""


class TaskValidationError(EntityValidationError):
    """A task payload references something that is not valid."""
