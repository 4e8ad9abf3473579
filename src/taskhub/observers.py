"""Observers that react to committed entity changes."""

import logging

from taskhub.events import ChangeDispatcher, ChangeEvent, change_dispatcher
from taskhub.services.cache import CategoryStatsCache

logger = logging.getLogger(__name__)

# Entities whose changes affect the category statistics aggregate
OBSERVED_ENTITIES = ("task", "category")


def forget_category_stats(change: ChangeEvent) -> None:
    """Invalidate the cached category statistics."""
    logger.debug(
        "Invalidating category statistics after %s %s",
        change.entity,
        change.action.value,
    )
    CategoryStatsCache.forget()


def register_observers(dispatcher: ChangeDispatcher = change_dispatcher) -> None:
    """Attach the cache observers to ``dispatcher``. Idempotent."""
    for entity in OBSERVED_ENTITIES:
        dispatcher.subscribe(entity, forget_category_stats)
