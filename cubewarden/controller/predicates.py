from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from cubewarden.models import Resource
from cubewarden.store import EventType, WatchEvent


def _accept(*_: Resource) -> bool:
    return True


def _reject(*_: Resource) -> bool:
    return False


@dataclass(slots=True)
class EventPredicate:
    """
    Per event type filters applied before an event reaches the queue.

    Attributes:
        create: Called with the created object.
        update: Called with the old and the new object.
        delete: Called with the last known state of the deleted object.
        generic: Called for events with no store mutation behind them.
    """

    create: Callable[[Resource], bool] = _accept
    update: Callable[[Resource, Resource], bool] = _accept
    delete: Callable[[Resource], bool] = _accept
    generic: Callable[[Resource], bool] = _reject

    @classmethod
    def for_all(cls, check: Callable[[Resource], bool]) -> EventPredicate:
        """Apply one check to create, update (new object) and delete events."""
        return cls(
            create=check,
            update=lambda old, new: check(new),
            delete=check,
            generic=_reject,
        )

    def accepts(self, event: WatchEvent) -> bool:
        match event.type:
            case EventType.ADDED:
                return self.create(event.object)
            case EventType.MODIFIED:
                old = event.old_object if event.old_object is not None else event.object
                return self.update(old, event.object)
            case EventType.DELETED:
                return self.delete(event.object)

        return self.generic(event.object)
