"""
Heartbeat health monitor for one managed cluster.

A Scout turns the stream of heartbeats reported by a member agent into
the cluster's health state and persists every transition on the
cluster's record in the pivot store:

    PROCESSING --heartbeat--> NORMAL --timeout--> ABNORMAL
                                 ^                    |
                                 +-----heartbeat------+

Heartbeats and timeout checks are handled by a single loop per cluster,
so state and last_heartbeat are never touched concurrently.
"""

from __future__ import annotations

import asyncio
import datetime
from typing import Awaitable, Callable

from cubewarden.logging import Logger
from cubewarden.models import (
    ClusterState,
    ClusterStatus,
    Heartbeat,
    ObjectKey,
    get_cluster_status,
    set_cluster_status,
)
from cubewarden.models.constants import CLUSTER_KIND
from cubewarden.reliability import JitterStrategy, RetryConfig, RetryExecutor
from cubewarden.store import ResourceStore, is_conflict

from .logging_models import ScoutDebug, ScoutError, ScoutInfo, ScoutWarning

DEFAULT_INITIAL_DELAY = 10.0
DEFAULT_WAIT_TIMEOUT = 10.0
DEFAULT_STATUS_RETRIES = 5

Clock = Callable[[], datetime.datetime]


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class _ScoutStopped(Exception):
    pass


class Scout:
    """
    Per-cluster health monitor.

    The Scout never stops itself: it exits once the stop event it was
    built with (the owning session's cancel signal) is set.

    Usage:
        stop = asyncio.Event()
        scout = Scout("member-1", pivot_store, stop)

        scout.start()                       # at most once
        await scout.receiver.put(heartbeat)  # from the report handler

        stop.set()                           # on deregistration
    """

    def __init__(
        self,
        cluster: str,
        store: ResourceStore,
        stop: asyncio.Event,
        wait_timeout: float | None = None,
        initial_delay: float | None = None,
        status_retries: int | None = None,
        logger: Logger | None = None,
        clock: Clock | None = None,
    ) -> None:
        # Zero or unset timings fall back to the defaults
        if not wait_timeout:
            wait_timeout = DEFAULT_WAIT_TIMEOUT

        if not initial_delay:
            initial_delay = DEFAULT_INITIAL_DELAY

        if not status_retries:
            status_retries = DEFAULT_STATUS_RETRIES

        self.cluster = cluster
        self.wait_timeout = wait_timeout
        self.initial_delay = initial_delay
        self.receiver: asyncio.Queue[Heartbeat] = asyncio.Queue()
        self.last_heartbeat: datetime.datetime | None = None

        self._store = store
        self._stop = stop
        self._logger = logger or Logger()
        self._now = clock or _utc_now
        self._key = ObjectKey(name=cluster)

        self._state = ClusterState.PROCESSING
        self._last_report_time: datetime.datetime | None = None
        self._started = False
        self._task: asyncio.Task | None = None

        self._retry = RetryExecutor(
            RetryConfig(
                max_attempts=status_retries,
                base_delay=0.01,
                max_delay=1.0,
                jitter=JitterStrategy.EQUAL,
                is_retryable=is_conflict,
            )
        )

    @property
    def stop_event(self) -> asyncio.Event:
        return self._stop

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    @property
    def started(self) -> bool:
        return self._started

    def cluster_health(self) -> ClusterState:
        return self._state

    def start(self) -> bool:
        """
        Start collecting after the initial delay.

        Returns:
            True if this call started the Scout, False if it was already started.
        """
        if self._started:
            return False

        self._started = True
        self._task = asyncio.create_task(self._run())

        return True

    async def _run(self) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self.initial_delay)
            return

        except asyncio.TimeoutError:
            pass

        await self.collect()

    async def collect(self) -> None:
        """Serve heartbeats and timeout ticks until the stop event is set."""
        await self._log(ScoutInfo, f"Start scout for cluster {self.cluster}")

        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.wait_timeout

        stop_task = asyncio.create_task(self._stop.wait())
        receive_task: asyncio.Task | None = None

        try:
            while not self._stop.is_set():
                if receive_task is None:
                    receive_task = asyncio.create_task(self.receiver.get())

                done, _ = await asyncio.wait(
                    {receive_task, stop_task},
                    timeout=max(0.0, next_tick - loop.time()),
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if stop_task in done:
                    break

                if receive_task in done:
                    heartbeat = receive_task.result()
                    receive_task = None

                    await self._serve(self.heal(heartbeat))
                    continue

                next_tick += self.wait_timeout
                if next_tick <= loop.time():
                    next_tick = loop.time() + self.wait_timeout

                await self._serve(self.check_timeout())

        finally:
            for task in (receive_task, stop_task):
                if task is not None and not task.done():
                    task.cancel()

            await self._log(ScoutWarning, f"Scout of cluster {self.cluster} stopped")

    async def _serve(self, step: Awaitable[None]) -> None:
        try:
            await step

        except Exception as err:
            await self._log(ScoutError, f"Scout of cluster {self.cluster} failed: {err}")

    async def heal(self, heartbeat: Heartbeat) -> None:
        """Record a heartbeat and persist the NORMAL state."""
        if self._stop.is_set():
            return

        if (
            self._last_report_time is not None
            and heartbeat.report_time <= self._last_report_time
        ):
            await self._log(
                ScoutDebug,
                f"Ignore duplicate heartbeat of cluster {self.cluster} reported at {heartbeat.report_time.isoformat()}",
            )
            return

        self._last_report_time = heartbeat.report_time

        if self._state != ClusterState.NORMAL:
            await self._log(ScoutInfo, f"Cluster {self.cluster} connected")

        self.last_heartbeat = self._now()

        updated = await self._update_status(
            ClusterStatus(
                state=ClusterState.NORMAL,
                reason=f"receive heartbeat from cluster {self.cluster}",
                last_heartbeat=self.last_heartbeat,
            )
        )

        if updated:
            self._state = ClusterState.NORMAL

    async def check_timeout(self) -> None:
        """Mark the cluster ABNORMAL once no heartbeat arrived within the wait timeout."""
        if self._stop.is_set():
            return

        last_heartbeat = self.last_heartbeat

        try:
            cluster = await self._store.get(CLUSTER_KIND, self._key)
            stored = get_cluster_status(cluster).last_heartbeat

            # Another pivot instance may have received the latest heartbeat
            if stored is not None and (last_heartbeat is None or stored > last_heartbeat):
                last_heartbeat = stored

        except Exception as err:
            await self._log(ScoutError, f"Get cluster {self.cluster} failed: {err}")

        await self._log(
            ScoutDebug,
            f"Check cluster {self.cluster}, last heartbeat: {last_heartbeat}, time now: {self._now().isoformat()}",
        )

        if not self._is_disconnected(last_heartbeat):
            if self._state != ClusterState.NORMAL:
                await self._log(ScoutInfo, f"Cluster {self.cluster} connected")

            self.last_heartbeat = last_heartbeat
            self._state = ClusterState.NORMAL
            return

        if self._state == ClusterState.ABNORMAL:
            return

        reason = f"cluster {self.cluster} disconnected"

        await self._logger.log(
            ScoutWarning(
                message=f"{reason}, last heartbeat: {last_heartbeat}",
                cluster=self.cluster,
                state=self._state.value,
                last_heartbeat=last_heartbeat.isoformat() if last_heartbeat else None,
            )
        )

        await self._update_status(
            ClusterStatus(
                state=ClusterState.ABNORMAL,
                reason=reason,
                last_heartbeat=last_heartbeat,
            )
        )

        if not self._stop.is_set():
            self._state = ClusterState.ABNORMAL

    def _is_disconnected(self, last_heartbeat: datetime.datetime | None) -> bool:
        if last_heartbeat is None:
            return True

        elapsed = (self._now() - last_heartbeat).total_seconds()
        return elapsed >= self.wait_timeout

    async def _update_status(self, status: ClusterStatus) -> bool:

        async def write() -> None:
            if self._stop.is_set():
                raise _ScoutStopped()

            cluster = await self._store.get(CLUSTER_KIND, self._key)
            set_cluster_status(cluster, status)

            if self._stop.is_set():
                raise _ScoutStopped()

            await self._store.update_status(cluster)

        try:
            await self._retry.execute(
                write,
                operation_name=f"update status of cluster {self.cluster}",
            )

        except _ScoutStopped:
            return False

        except Exception as err:
            await self._log(ScoutError, f"Update status of cluster {self.cluster} failed: {err}")
            return False

        return True

    async def _log(
        self,
        model: type[ScoutDebug | ScoutInfo | ScoutWarning | ScoutError],
        message: str,
    ) -> None:
        await self._logger.log(
            model(
                message=message,
                cluster=self.cluster,
                state=self._state.value,
            )
        )
