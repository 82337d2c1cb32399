"""
In-process declarative store.

Used as the local store in tests and single-process deployments. It
assigns uid, resource version and creation timestamp on create, enforces
optimistic concurrency on update, and fans mutations out to watchers.
"""

from __future__ import annotations

import asyncio
import datetime
import uuid
from collections import defaultdict
from dataclasses import dataclass
from typing import AsyncIterator

from cubewarden.models import ObjectKey, Resource

from .errors import (
    AlreadyExistsError,
    ConflictError,
    InvalidObjectError,
    NotFoundError,
)
from .events import EventType, WatchEvent
from .selectors import LabelSelector
from .store import ResourceStore, Watch


@dataclass(slots=True)
class StoreAction:
    """Record of one store call, kept for inspection in tests."""
    verb: str
    kind: str
    key: ObjectKey | None
    object: Resource | None = None


@dataclass(slots=True)
class _Fault:
    verb: str
    kind: str | None
    error: Exception
    remaining: int


class MemoryWatch(Watch):
    def __init__(self, store: MemoryStore, kind: str) -> None:
        self._store = store
        self._kind = kind
        self._queue: asyncio.Queue[WatchEvent | None] = asyncio.Queue()
        self._stopped = False

    def put(self, event: WatchEvent) -> None:
        if not self._stopped:
            self._queue.put_nowait(event)

    def stop(self) -> None:
        if self._stopped:
            return

        self._stopped = True
        self._store._remove_watch(self._kind, self)
        self._queue.put_nowait(None)

    async def _iterate(self) -> AsyncIterator[WatchEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return

            yield event

    def __aiter__(self) -> AsyncIterator[WatchEvent]:
        return self._iterate()


class MemoryStore(ResourceStore):
    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.actions: list[StoreAction] = []

        self._objects: dict[str, dict[ObjectKey, Resource]] = defaultdict(dict)
        self._resource_version = 0
        self._watches: dict[str, list[MemoryWatch]] = defaultdict(list)
        self._faults: list[_Fault] = []
        self._closed = False

    def fail_next(
        self,
        verb: str,
        error: Exception,
        kind: str | None = None,
        count: int = 1,
    ) -> None:
        """Make the next `count` calls of `verb` (optionally for `kind`) raise `error`."""
        self._faults.append(
            _Fault(
                verb=verb,
                kind=kind,
                error=error,
                remaining=count,
            )
        )

    def _check_fault(self, verb: str, kind: str) -> None:
        for fault in self._faults:
            if fault.verb == verb and fault.kind in (None, kind) and fault.remaining > 0:
                fault.remaining -= 1
                if fault.remaining == 0:
                    self._faults.remove(fault)

                raise fault.error

    def _next_resource_version(self) -> str:
        self._resource_version += 1
        return str(self._resource_version)

    def _record(
        self,
        verb: str,
        kind: str,
        key: ObjectKey | None,
        obj: Resource | None = None,
    ) -> None:
        self.actions.append(
            StoreAction(
                verb=verb,
                kind=kind,
                key=key,
                object=obj.copy() if obj else None,
            )
        )

    def _notify(self, kind: str, event: WatchEvent) -> None:
        for watch in list(self._watches[kind]):
            watch.put(
                WatchEvent(
                    type=event.type,
                    object=event.object.copy(),
                    old_object=event.old_object.copy() if event.old_object else None,
                )
            )

    def _remove_watch(self, kind: str, watch: MemoryWatch) -> None:
        if watch in self._watches[kind]:
            self._watches[kind].remove(watch)

    async def get(self, kind: str, key: ObjectKey) -> Resource:
        await asyncio.sleep(0)
        self._record("get", kind, key)
        self._check_fault("get", kind)

        stored = self._objects[kind].get(key)
        if stored is None:
            raise NotFoundError(kind, key)

        return stored.copy()

    async def list(
        self,
        kind: str,
        namespace: str | None = None,
        selector: str | LabelSelector | None = None,
    ) -> list[Resource]:
        await asyncio.sleep(0)
        self._record("list", kind, None)
        self._check_fault("list", kind)

        if isinstance(selector, str):
            selector = LabelSelector.parse(selector)

        items = [
            obj.copy()
            for key, obj in sorted(
                self._objects[kind].items(),
                key=lambda item: (item[0].namespace, item[0].name),
            )
            if (namespace is None or key.namespace == namespace)
            and (selector is None or selector.matches(obj.labels))
        ]

        return items

    async def create(self, obj: Resource) -> Resource:
        await asyncio.sleep(0)
        self._record("create", obj.kind, obj.key, obj)
        self._check_fault("create", obj.kind)

        if not obj.name:
            raise InvalidObjectError(obj.kind, obj.key, "name is required")

        if obj.metadata.resource_version:
            raise InvalidObjectError(
                obj.kind,
                obj.key,
                "resourceVersion should not be set on objects to be created",
            )

        if obj.key in self._objects[obj.kind]:
            raise AlreadyExistsError(obj.kind, obj.key)

        stored = obj.copy()
        stored.metadata.uid = str(uuid.uuid4())
        stored.metadata.creation_timestamp = datetime.datetime.now(datetime.timezone.utc)
        stored.metadata.resource_version = self._next_resource_version()

        self._objects[obj.kind][obj.key] = stored
        self._notify(
            obj.kind,
            WatchEvent(
                type=EventType.ADDED,
                object=stored,
            ),
        )

        return stored.copy()

    def _check_preconditions(self, obj: Resource, stored: Resource) -> None:
        resource_version = obj.metadata.resource_version
        if resource_version and resource_version != stored.metadata.resource_version:
            raise ConflictError(
                obj.kind,
                obj.key,
                "the object has been modified; please apply your changes to the latest version and try again",
            )

        if obj.metadata.uid and obj.metadata.uid != stored.metadata.uid:
            raise ConflictError(
                obj.kind,
                obj.key,
                f"precondition failed: uid in object meta: {obj.metadata.uid}",
            )

    async def update(self, obj: Resource) -> Resource:
        await asyncio.sleep(0)
        self._record("update", obj.kind, obj.key, obj)
        self._check_fault("update", obj.kind)

        stored = self._objects[obj.kind].get(obj.key)
        if stored is None:
            raise NotFoundError(obj.kind, obj.key)

        self._check_preconditions(obj, stored)

        updated = obj.copy()
        updated.metadata.uid = stored.metadata.uid
        updated.metadata.creation_timestamp = stored.metadata.creation_timestamp
        updated.metadata.resource_version = self._next_resource_version()
        updated.status = stored.status.copy()

        self._objects[obj.kind][obj.key] = updated
        self._notify(
            obj.kind,
            WatchEvent(
                type=EventType.MODIFIED,
                object=updated,
                old_object=stored,
            ),
        )

        return updated.copy()

    async def update_status(self, obj: Resource) -> Resource:
        await asyncio.sleep(0)
        self._record("update_status", obj.kind, obj.key, obj)
        self._check_fault("update_status", obj.kind)

        stored = self._objects[obj.kind].get(obj.key)
        if stored is None:
            raise NotFoundError(obj.kind, obj.key)

        self._check_preconditions(obj, stored)

        updated = stored.copy()
        updated.status = obj.copy().status
        updated.metadata.resource_version = self._next_resource_version()

        self._objects[obj.kind][obj.key] = updated
        self._notify(
            obj.kind,
            WatchEvent(
                type=EventType.MODIFIED,
                object=updated,
                old_object=stored,
            ),
        )

        return updated.copy()

    async def delete(self, kind: str, key: ObjectKey) -> None:
        await asyncio.sleep(0)
        self._record("delete", kind, key)
        self._check_fault("delete", kind)

        stored = self._objects[kind].pop(key, None)
        if stored is None:
            raise NotFoundError(kind, key)

        self._notify(
            kind,
            WatchEvent(
                type=EventType.DELETED,
                object=stored,
            ),
        )

    def watch(self, kind: str) -> MemoryWatch:
        watch = MemoryWatch(self, kind)
        self._watches[kind].append(watch)
        return watch

    async def close(self) -> None:
        self._closed = True

        for watches in list(self._watches.values()):
            for watch in list(watches):
                watch.stop()

    def actions_for(
        self,
        verb: str | None = None,
        kind: str | None = None,
        key: ObjectKey | None = None,
    ) -> list[StoreAction]:
        return [
            action for action in self.actions
            if (verb is None or action.verb == verb)
            and (kind is None or action.kind == kind)
            and (key is None or action.key == key)
        ]

    def clear_actions(self) -> None:
        self.actions.clear()
