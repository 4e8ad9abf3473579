"""Entity change events dispatched after a successful commit.

Services call :meth:`ChangeDispatcher.record` while they work inside a
session. Nothing is delivered until that session commits; a rollback
discards whatever was recorded. Subscribers therefore never observe a
change that did not reach the database.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_PENDING_KEY = "taskhub_pending_changes"


class ChangeAction(str, Enum):
    """Kinds of mutation an entity can go through."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    RESTORED = "restored"
    FORCE_DELETED = "force_deleted"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to one entity."""

    entity: str
    action: ChangeAction
    entity_id: int


ChangeHandler = Callable[[ChangeEvent], None]


class ChangeDispatcher:
    """Routes change events to per-entity subscribers."""

    def __init__(self):
        self._handlers: dict[str, list[ChangeHandler]] = defaultdict(list)

    def subscribe(self, entity: str, handler: ChangeHandler) -> None:
        """Register ``handler`` for events on ``entity``.

        Subscribing the same handler twice is a no-op.
        """
        if handler not in self._handlers[entity]:
            self._handlers[entity].append(handler)

    def unsubscribe_all(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    def record(
        self,
        session: AsyncSession | Session,
        entity: str,
        action: ChangeAction,
        entity_id: int,
    ) -> None:
        """Queue an event on ``session`` for delivery after commit."""
        pending = session.info.setdefault(_PENDING_KEY, [])
        pending.append(ChangeEvent(entity=entity, action=action, entity_id=entity_id))

    def dispatch(self, events: list[ChangeEvent]) -> None:
        """Deliver events to their subscribers in recording order."""
        for change in events:
            handlers = self._handlers.get(change.entity, [])
            logger.debug(
                "Dispatching %s %s #%s to %d handler(s)",
                change.entity,
                change.action.value,
                change.entity_id,
                len(handlers),
            )
            for handler in handlers:
                handler(change)


change_dispatcher = ChangeDispatcher()


def _after_commit(session: Session) -> None:
    events = session.info.pop(_PENDING_KEY, None)
    if events:
        change_dispatcher.dispatch(events)


def _after_rollback(session: Session) -> None:
    dropped = session.info.pop(_PENDING_KEY, None)
    if dropped:
        logger.debug("Discarded %d change event(s) on rollback", len(dropped))


if not event.contains(Session, "after_commit", _after_commit):
    event.listen(Session, "after_commit", _after_commit)
    event.listen(Session, "after_rollback", _after_rollback)
