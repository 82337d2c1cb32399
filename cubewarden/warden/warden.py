"""
Warden agent.

One Warden runs in every cluster. Its role is taken from Env:

- pivot: keeps the cluster registry in line with Cluster records,
  monitors every registered cluster through its Scout and accepts
  heartbeats for them;
- member: mirrors the synced kinds from the pivot store and sweeps
  orphaned mirrors.

Both roles register their own Cluster record and report heartbeats.
"""

from __future__ import annotations

import asyncio

from cubewarden.env import Env
from cubewarden.logging import Logger, LoggingConfig
from cubewarden.models import ClusterConfig, ClusterType
from cubewarden.multicluster import (
    ClientFactory,
    ClusterRegistry,
    ClusterSession,
    ClusterSyncer,
    HeartbeatReceiver,
    Scout,
)
from cubewarden.store import ResourceStore

from .logging_models import WardenError, WardenInfo
from .reporter import HeartbeatSink, Reporter
from .syncmgr import SyncManager


class Warden:
    """
    Example usage:
        warden = Warden(env, local_store, pivot_store, sink=post_heartbeat)
        await warden.start()
        ...
        await warden.stop()
    """

    def __init__(
        self,
        env: Env,
        local_store: ResourceStore,
        pivot_store: ResourceStore,
        sink: HeartbeatSink | None = None,
        client_factory: ClientFactory | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.env = env
        self.cluster = env.WARDEN_CLUSTER_NAME
        self.is_member = env.WARDEN_IS_MEMBER_CLUSTER

        self._local_store = local_store
        self._pivot_store = pivot_store
        self._logger = logger or Logger()
        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task] = []

        self.registry: ClusterRegistry | None = None
        self.receiver: HeartbeatReceiver | None = None
        self.cluster_syncer: ClusterSyncer | None = None
        self.sync_manager: SyncManager | None = None
        self.reporter: Reporter | None = None

        if self.is_member:
            self.sync_manager = SyncManager(
                pivot_store,
                local_store,
                logger=self._logger,
                **env.get_sync_config(),
            )

        else:
            self.registry = ClusterRegistry(logger=self._logger)
            self.receiver = HeartbeatReceiver(self.registry, logger=self._logger)

            sync_config = env.get_sync_config()
            self.cluster_syncer = ClusterSyncer(
                self.registry,
                pivot_store,
                client_factory or self._default_client_factory,
                scout_config=env.get_scout_config(),
                workers=sync_config['workers'],
                retry_base_delay=sync_config['retry_base_delay'],
                retry_max_delay=sync_config['retry_max_delay'],
                logger=self._logger,
            )

        if sink is not None:
            reporter_config = env.get_reporter_config()
            self.reporter = Reporter(
                reporter_config['cluster'],
                pivot_store,
                sink,
                is_member_cluster=reporter_config['is_member_cluster'],
                is_writable=reporter_config['is_writable'],
                api_endpoint=reporter_config['api_endpoint'],
                period=reporter_config['period'],
                register_interval=reporter_config['register_interval'],
                register_timeout=reporter_config['register_timeout'],
                logger=self._logger,
            )

            if self.sync_manager is not None:
                self.reporter.register_check(self.sync_manager.ready)

    @property
    def role(self) -> str:
        return "member" if self.is_member else "pivot"

    def configure_logging(self) -> None:
        logging_config = self.env.get_logging_config()

        LoggingConfig().update(
            log_directory=logging_config['log_directory'],
            log_level=logging_config['log_level'],
            log_output=logging_config['log_output'],
        )

    async def start(self) -> None:
        self.configure_logging()

        await self._log(WardenInfo, f"Starting warden of cluster {self.cluster} as {self.role}")

        if self.reporter is not None:
            registered = await self.reporter.register_if_needed()
            if not registered:
                await self._log(WardenError, f"Register cluster {self.cluster} to pivot failed")

        if self.registry is not None:
            self._register_pivot()

        if self.sync_manager is not None:
            self._tasks.append(asyncio.create_task(self.sync_manager.run(self._stop)))

        if self.cluster_syncer is not None:
            self._tasks.append(asyncio.create_task(self.cluster_syncer.run(self._stop)))

        if self.reporter is not None:
            self._tasks.append(asyncio.create_task(self.reporter.run(self._stop)))

    async def stop(self) -> None:
        self._stop.set()

        if self.registry is not None:
            for name in self.registry.names():
                self.registry.delete(name)

        results = await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        for result in results:
            if isinstance(result, Exception):
                await self._log(WardenError, f"Warden task failed: {result}")

        await self._log(WardenInfo, f"Warden of cluster {self.cluster} stopped")
        await self._logger.close()

    def _register_pivot(self) -> None:
        stop = asyncio.Event()
        scout = Scout(
            self.cluster,
            self._pivot_store,
            stop,
            logger=self._logger,
            **self.env.get_scout_config(),
        )

        self.registry.add(
            self.cluster,
            ClusterSession(
                self.cluster,
                self._local_store,
                ClusterConfig(api_endpoint=self.env.WARDEN_LOCAL_API_ENDPOINT),
                scout,
                stop,
                cluster_type=ClusterType.PIVOT,
            ),
        )

        self.registry.scout_for(self.cluster)

    def _default_client_factory(self, name: str, config: ClusterConfig) -> ResourceStore:
        raise ConnectionError(f"no store client factory configured for cluster {name}")

    async def _log(self, model: type[WardenInfo | WardenError], message: str) -> None:
        await self._logger.log(
            model(
                message=message,
                cluster=self.cluster,
                role=self.role,
            )
        )
