"""
Orphan sweeper.

Watch events can be missed while a member is disconnected or restarting,
so the sweeper periodically lists every synced kind in the member store
and deletes mirrors whose pivot object is gone. It never deletes on an
ambiguous existence check.
"""

from __future__ import annotations

import asyncio

from cubewarden.logging import Logger
from cubewarden.models import Resource
from cubewarden.models.constants import (
    HNC_INHERITED_LABEL,
    PIVOT_RESOURCE_VERSION_ANNOTATION,
)
from cubewarden.store import ResourceStore, is_not_found

from .deletion import delete_local
from .logging_models import GcInfo, GcWarning
from .predicates import is_sync_resource
from .resources import SYNC_KINDS, SyncKind

DEFAULT_GC_INTERVAL = 60.0


class Gc:
    def __init__(
        self,
        pivot_store: ResourceStore,
        local_store: ResourceStore,
        sync_kinds: tuple[SyncKind, ...] = SYNC_KINDS,
        logger: Logger | None = None,
    ) -> None:
        self._pivot_store = pivot_store
        self._local_store = local_store
        self._sync_kinds = sync_kinds
        self._logger = logger or Logger()

    async def run(self, stop: asyncio.Event, interval: float = DEFAULT_GC_INTERVAL) -> None:
        """Sweep every interval until stop is set."""
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
                return

            except asyncio.TimeoutError:
                pass

            await self.gc_work()

    async def gc_work(self) -> int:
        """
        Run one sweep over all synced kinds.

        Returns:
            The number of local objects deleted.
        """
        deleted = 0

        for sync_kind in self._sync_kinds:
            try:
                items = await self._local_store.list(
                    sync_kind.kind,
                    selector=f"!{HNC_INHERITED_LABEL}",
                )

            except Exception as err:
                await self._warn(sync_kind.kind, None, f"error list resource: {err}")
                continue

            for item in items:
                if not is_sync_resource(item):
                    continue

                if await self._sweep(sync_kind, item):
                    deleted += 1

        return deleted

    async def _sweep(self, sync_kind: SyncKind, item: Resource) -> bool:
        try:
            pivot = await self._pivot_store.get(sync_kind.kind, item.key)

        except Exception as err:
            if not is_not_found(err):
                await self._warn(sync_kind.kind, item, f"error get resource: {err}")
                return False

            pivot = None

        if pivot is not None:
            # Out-of-scope pivot objects only retire mirrors this agent wrote
            if is_sync_resource(pivot) or PIVOT_RESOURCE_VERSION_ANNOTATION not in item.annotations:
                return False

        await self._logger.log(
            GcInfo(
                message=f"the resource {sync_kind.api_version}/{sync_kind.kind}/{item.namespace}/{item.name} is not synced from the pivot cluster, delete it",
                kind=sync_kind.kind,
                namespace=item.namespace,
                name=item.name,
            )
        )

        try:
            return await delete_local(self._local_store, sync_kind, item.key)

        except Exception as err:
            await self._warn(sync_kind.kind, item, f"error delete resource: {err}")
            return False

    async def _warn(self, kind: str, item: Resource | None, message: str) -> None:
        await self._logger.log(
            GcWarning(
                message=message,
                kind=kind,
                namespace=item.namespace if item else "",
                name=item.name if item else "",
            )
        )
