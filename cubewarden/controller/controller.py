"""
Watch-driven reconcile loop for one kind of a declarative store.

The controller lists and watches the kind, filters events through an
EventPredicate, and hands object identities to a pool of workers via a
WorkQueue. A reconcile that raises is requeued with exponential backoff;
one that returns normally is forgotten until the next event.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from cubewarden.logging import Logger
from cubewarden.reliability import JitterStrategy, calculate_jittered_delay
from cubewarden.store import ResourceStore, StoreError, Watch

from .logging_models import ControllerDebug, ControllerError, ControllerInfo
from .predicates import EventPredicate
from .request import Request, Result
from .work_queue import WorkQueue

ReconcileFunc = Callable[[Request], Awaitable[Result | None]]


class Controller:
    def __init__(
        self,
        name: str,
        store: ResourceStore,
        kind: str,
        reconcile: ReconcileFunc,
        predicate: EventPredicate | None = None,
        workers: int = 1,
        retry_base_delay: float = 0.005,
        retry_max_delay: float = 1000.0,
        logger: Logger | None = None,
    ) -> None:
        self.name = name
        self.kind = kind

        self._store = store
        self._reconcile = reconcile
        self._predicate = predicate or EventPredicate()
        self._workers = max(1, workers)
        self._logger = logger or Logger()
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

        self.queue: WorkQueue[Request] = WorkQueue(
            name,
            retry_base_delay=retry_base_delay,
            retry_max_delay=retry_max_delay,
        )

        # Set once the initial list has been enqueued
        self.synced = asyncio.Event()

    async def run(self, stop: asyncio.Event) -> None:
        """Run until `stop` is set, then drain in-flight reconciles and return."""
        watch = self._store.watch(self.kind)

        worker_tasks = [
            asyncio.create_task(self._worker()) for _ in range(self._workers)
        ]
        watch_task = asyncio.create_task(self._watch_loop(watch))

        await self._log(ControllerInfo, f"Starting controller with {self._workers} workers")

        try:
            await self._initial_list(stop)
            await stop.wait()

        finally:
            watch.stop()
            self.queue.shutdown()

            await asyncio.gather(*worker_tasks, return_exceptions=True)

            watch_task.cancel()
            await asyncio.gather(watch_task, return_exceptions=True)

            await self._log(ControllerInfo, "Controller stopped")

    async def _initial_list(self, stop: asyncio.Event) -> None:
        attempt = 0

        while not stop.is_set():
            try:
                items = await self._store.list(self.kind)

            except (StoreError, ConnectionError, TimeoutError) as err:
                await self._log(ControllerError, f"Initial list failed: {err}")

                delay = calculate_jittered_delay(
                    attempt,
                    base_delay=self._retry_base_delay,
                    max_delay=self._retry_max_delay,
                    jitter=JitterStrategy.NONE,
                )
                attempt += 1

                try:
                    await asyncio.wait_for(stop.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass

                continue

            for obj in items:
                if self._predicate.create(obj):
                    self.queue.add(Request(self.kind, obj.key))

            self.synced.set()
            return

    async def _watch_loop(self, watch: Watch) -> None:
        async for event in watch:
            if not self._predicate.accepts(event):
                continue

            self.queue.add(Request(self.kind, event.object.key))

    async def _worker(self) -> None:
        while True:
            request = await self.queue.get()
            if request is None:
                return

            try:
                result = await self._reconcile(request)

            except asyncio.CancelledError:
                self.queue.done(request)
                raise

            except Exception as err:
                self.queue.add_rate_limited(request)
                await self._logger.log(
                    ControllerError(
                        message=f"Reconcile {request} failed: {err}",
                        controller=self.name,
                        kind=self.kind,
                        namespace=request.namespace,
                        name=request.name,
                        requeues=self.queue.num_requeues(request),
                    )
                )

            else:
                self._requeue(request, result)
                await self._logger.log(
                    ControllerDebug(
                        message=f"Reconciled {request}",
                        controller=self.name,
                        kind=self.kind,
                        namespace=request.namespace,
                        name=request.name,
                    )
                )

            self.queue.done(request)

    def _requeue(self, request: Request, result: Result | None) -> None:
        if result is not None and result.requeue_after > 0:
            self.queue.forget(request)
            self.queue.add_after(request, result.requeue_after)

        elif result is not None and result.requeue:
            self.queue.add_rate_limited(request)

        else:
            self.queue.forget(request)

    async def _log(self, model: type[ControllerInfo | ControllerError], message: str) -> None:
        await self._logger.log(
            model(
                message=message,
                controller=self.name,
                kind=self.kind,
            )
        )
