from __future__ import annotations

import asyncio

from cubewarden.controller import Controller, EventPredicate
from cubewarden.logging import Logger
from cubewarden.store import ResourceStore

from .gc import DEFAULT_GC_INTERVAL, Gc
from .logging_models import SyncManagerInfo
from .predicates import is_sync_resource
from .resources import SYNC_KINDS, SyncKind
from .sync_engine import StalenessCheck, SyncEngine


def sync_predicate() -> EventPredicate:
    """
    Filter for pivot events worth a reconcile.

    Updates are also accepted when the old object was in scope, so a
    mirror is dropped once its pivot object leaves scope.
    """
    return EventPredicate(
        create=is_sync_resource,
        update=lambda old, new: is_sync_resource(old) or is_sync_resource(new),
        delete=is_sync_resource,
    )


class SyncManager:
    """
    Runs one SyncEngine controller per synced kind plus the orphan sweeper.

    Example usage:
        manager = SyncManager(pivot_store, local_store)
        task = asyncio.create_task(manager.run(stop))

        await manager.wait_for_sync(timeout=10)
    """

    def __init__(
        self,
        pivot_store: ResourceStore,
        local_store: ResourceStore,
        sync_kinds: tuple[SyncKind, ...] = SYNC_KINDS,
        workers: int = 1,
        retry_base_delay: float = 0.005,
        retry_max_delay: float = 1000.0,
        staleness_check: StalenessCheck | str = StalenessCheck.PIVOT_VS_LOCAL,
        gc_interval: float = DEFAULT_GC_INTERVAL,
        logger: Logger | None = None,
    ) -> None:
        self.gc_interval = gc_interval

        self._logger = logger or Logger()
        self._sync_kinds = sync_kinds

        self.engines: dict[str, SyncEngine] = {}
        self.controllers: dict[str, Controller] = {}

        for sync_kind in sync_kinds:
            engine = SyncEngine(
                sync_kind,
                pivot_store,
                local_store,
                staleness_check=StalenessCheck(staleness_check),
                logger=self._logger,
            )

            self.engines[sync_kind.kind] = engine
            self.controllers[sync_kind.kind] = Controller(
                f"sync-{sync_kind.kind.lower()}",
                pivot_store,
                sync_kind.kind,
                engine.reconcile,
                predicate=sync_predicate(),
                workers=workers,
                retry_base_delay=retry_base_delay,
                retry_max_delay=retry_max_delay,
                logger=self._logger,
            )

        self.gc = Gc(
            pivot_store,
            local_store,
            sync_kinds=sync_kinds,
            logger=self._logger,
        )

    def ready(self) -> bool:
        return all(
            controller.synced.is_set() for controller in self.controllers.values()
        )

    async def wait_for_sync(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(
                asyncio.gather(*[
                    controller.synced.wait()
                    for controller in self.controllers.values()
                ]),
                timeout=timeout,
            )

        except asyncio.TimeoutError:
            return False

        return True

    async def run(self, stop: asyncio.Event) -> None:
        await self._logger.log(
            SyncManagerInfo(
                message=f"Starting sync manager for {len(self._sync_kinds)} kinds",
                kinds=len(self._sync_kinds),
            )
        )

        await asyncio.gather(
            *[controller.run(stop) for controller in self.controllers.values()],
            self.gc.run(stop, interval=self.gc_interval),
        )
