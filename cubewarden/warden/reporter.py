"""
Member-side heartbeat reporter.

The reporter registers the member's own Cluster record on the pivot,
waits for the local readiness checks, then sends a heartbeat every
period through a sink. The sink stands in for the HTTP call to the
pivot's report handler and returns whether the pivot accepted it.
"""

from __future__ import annotations

import asyncio
import datetime
import inspect
from typing import Awaitable, Callable

from cubewarden.logging import Logger
from cubewarden.models import ClusterSpec, Heartbeat, new_cluster
from cubewarden.store import ResourceStore, is_already_exists

from .logging_models import ReporterDebug, ReporterInfo, ReporterWarning

HeartbeatSink = Callable[[Heartbeat], Awaitable[bool]]
ReadinessCheck = Callable[[], bool | Awaitable[bool]]

READINESS_PERIOD = 0.5


class Reporter:
    def __init__(
        self,
        cluster: str,
        pivot_store: ResourceStore,
        sink: HeartbeatSink,
        is_member_cluster: bool = True,
        is_writable: bool = True,
        api_endpoint: str = "",
        kubeconfig: str = "",
        period: float = 3.0,
        register_interval: float = 3.0,
        register_timeout: float = 15.0,
        logger: Logger | None = None,
    ) -> None:
        self.cluster = cluster
        self.is_member_cluster = is_member_cluster
        self.is_writable = is_writable
        self.api_endpoint = api_endpoint
        self.kubeconfig = kubeconfig
        self.period = period
        self.register_interval = register_interval
        self.register_timeout = register_timeout

        self._pivot_store = pivot_store
        self._sink = sink
        self._logger = logger or Logger()
        self._checks: list[ReadinessCheck] = []
        self._pivot_healthy = False

    @property
    def pivot_healthy(self) -> bool:
        return self._pivot_healthy

    def register_check(self, check: ReadinessCheck) -> None:
        """Add a check that must pass before the first heartbeat is sent."""
        self._checks.append(check)

    async def register_if_needed(self) -> bool:
        """
        Create this member's Cluster record on the pivot.

        An existing record counts as registered. Failed attempts are
        retried every register_interval until register_timeout.

        Returns:
            True once the record exists, False on timeout.
        """
        cluster = new_cluster(
            self.cluster,
            ClusterSpec(
                kubeconfig=self.kubeconfig,
                api_endpoint=self.api_endpoint,
                is_member_cluster=self.is_member_cluster,
                is_writable=self.is_writable,
            ),
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.register_timeout

        while True:
            try:
                await self._pivot_store.create(cluster.copy())
                await self._log(ReporterInfo, f"Cluster cr {self.cluster} registered")
                return True

            except Exception as err:
                if is_already_exists(err):
                    await self._log(ReporterDebug, f"Cluster cr {self.cluster} is already exist")
                    return True

                await self._log(ReporterWarning, f"Create cluster {self.cluster} failed: {err}")

            remaining = deadline - loop.time()
            if remaining <= 0:
                return False

            await asyncio.sleep(min(self.register_interval, remaining))

    async def wait_ready(self, stop: asyncio.Event) -> bool:
        for check in self._checks:
            while not await self._check(check):
                try:
                    await asyncio.wait_for(stop.wait(), timeout=READINESS_PERIOD)
                    return False

                except asyncio.TimeoutError:
                    pass

        return True

    async def report(self) -> bool:
        heartbeat = Heartbeat(
            cluster=self.cluster,
            report_time=datetime.datetime.now(datetime.timezone.utc),
        )

        try:
            healthy = await self._sink(heartbeat)

        except (ConnectionError, TimeoutError, OSError) as err:
            await self._log(ReporterDebug, f"Warden report failed: {err}")
            healthy = False

        except Exception as err:
            await self._log(ReporterWarning, f"Warden report rejected: {err}")
            healthy = False

        if healthy:
            await self._heal_pivot()

        else:
            await self._ill_pivot()

        return healthy

    async def run(self, stop: asyncio.Event) -> None:
        if not await self.wait_ready(stop):
            return

        await self._log(ReporterInfo, f"Start reporting heartbeats of cluster {self.cluster}")

        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.period)
                return

            except asyncio.TimeoutError:
                pass

            await self.report()

    async def _check(self, check: ReadinessCheck) -> bool:
        result = check()
        if inspect.isawaitable(result):
            result = await result

        return bool(result)

    async def _heal_pivot(self) -> None:
        if not self._pivot_healthy:
            await self._log(ReporterInfo, "Connected with pivot cluster")

        self._pivot_healthy = True

    async def _ill_pivot(self) -> None:
        if self._pivot_healthy:
            await self._log(ReporterWarning, "Disconnect with pivot cluster")

        self._pivot_healthy = False

    async def _log(
        self,
        model: type[ReporterDebug | ReporterInfo | ReporterWarning],
        message: str,
    ) -> None:
        await self._logger.log(
            model(
                message=message,
                cluster=self.cluster,
            )
        )
