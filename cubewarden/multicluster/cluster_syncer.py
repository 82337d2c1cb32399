"""
Pivot-side controller keeping the registry in line with Cluster records.

A Cluster record that appears in the pivot store gets a session: a store
client built by the client factory plus a Scout writing health to the
record. A record that disappears has its session deleted, which stops
the Scout through the session's stop event.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable

from cubewarden.controller import Controller, EventPredicate, Request
from cubewarden.logging import Logger
from cubewarden.models import (
    ClusterConfig,
    ClusterState,
    ClusterStatus,
    ClusterType,
    Resource,
    get_cluster_spec,
    get_cluster_status,
    set_cluster_status,
)
from cubewarden.models.constants import CLUSTER_KIND, PIVOT_CLUSTER
from cubewarden.store import ResourceStore, StoreError, is_not_found

from .errors import ClusterExistsError, ClusterNotFoundError
from .logging_models import ClusterSyncError, ClusterSyncInfo, ClusterSyncWarning
from .registry import ClusterRegistry
from .scout import Scout
from .session import ClusterSession

ClientFactory = Callable[
    [str, ClusterConfig],
    ResourceStore | Awaitable[ResourceStore],
]


def _state_of(cluster: Resource) -> ClusterState | None:
    try:
        return get_cluster_status(cluster).state

    except ValueError:
        return None


def _retry_requested(old: Resource, new: Resource) -> bool:
    # Setting a failed record back to processing asks for another attempt
    return (
        _state_of(old) == ClusterState.INIT_FAILED
        and _state_of(new) == ClusterState.PROCESSING
    )


class ClusterSyncer:
    """
    Registers and deregisters member clusters from Cluster records.

    Example usage:
        syncer = ClusterSyncer(registry, pivot_store, client_factory)
        await syncer.run(stop)
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        pivot_store: ResourceStore,
        client_factory: ClientFactory,
        with_scout: bool = True,
        scout_config: dict[str, Any] | None = None,
        workers: int = 1,
        retry_base_delay: float = 0.005,
        retry_max_delay: float = 1000.0,
        logger: Logger | None = None,
    ) -> None:
        self._registry = registry
        self._pivot_store = pivot_store
        self._client_factory = client_factory
        self._with_scout = with_scout
        self._scout_config = scout_config or {}
        self._logger = logger or Logger()

        self.controller = Controller(
            "cluster-syncer",
            pivot_store,
            CLUSTER_KIND,
            self.reconcile,
            predicate=EventPredicate(update=_retry_requested),
            workers=workers,
            retry_base_delay=retry_base_delay,
            retry_max_delay=retry_max_delay,
            logger=self._logger,
        )

    async def run(self, stop: asyncio.Event) -> None:
        await self.controller.run(stop)

    async def reconcile(self, request: Request) -> None:
        name = request.name

        try:
            cluster = await self._pivot_store.get(CLUSTER_KIND, request.key)

        except StoreError as err:
            if not is_not_found(err):
                raise

            await self._deregister(name)
            return

        if name in self._registry:
            return

        try:
            session = await self._build_session(cluster)

        except Exception as err:
            await self._log(ClusterSyncError, name, f"Build session for cluster {name} failed: {err}")
            await self._set_state(cluster, ClusterState.INIT_FAILED, f"connect to cluster {name} failed: {err}")
            raise

        try:
            self._registry.add(name, session)

        except ClusterExistsError:
            # Registered concurrently, the new session is never used
            session.close()
            return

        await self._log(ClusterSyncInfo, name, f"Ensure cluster {name} in internal clusters success")

        state = _state_of(cluster)
        if state is None or state == ClusterState.INIT_FAILED:
            await self._set_state(cluster, ClusterState.PROCESSING, f"cluster {name} registered")

        if self._with_scout:
            self._registry.scout_for(name)

    async def _build_session(self, cluster: Resource) -> ClusterSession:
        name = cluster.name
        config = get_cluster_spec(cluster).to_config()

        client = self._client_factory(name, config)
        if inspect.isawaitable(client):
            client = await client

        stop = asyncio.Event()
        scout = Scout(
            name,
            self._pivot_store,
            stop,
            logger=self._logger,
            **self._scout_config,
        )

        return ClusterSession(
            name,
            client,
            config,
            scout,
            stop,
            cluster_type=ClusterType.PIVOT if name == PIVOT_CLUSTER else ClusterType.MEMBER,
        )

    async def _deregister(self, name: str) -> None:
        try:
            self._registry.delete(name)

        except ClusterNotFoundError:
            await self._log(ClusterSyncWarning, name, f"Cluster {name} already removed from internal clusters")
            return

        await self._log(ClusterSyncInfo, name, f"Delete cluster {name} from internal clusters success")

    async def _set_state(self, cluster: Resource, state: ClusterState, reason: str) -> None:
        status = get_cluster_status(cluster)
        set_cluster_status(
            cluster,
            ClusterStatus(
                state=state,
                reason=reason,
                last_heartbeat=status.last_heartbeat,
            ),
        )

        try:
            await self._pivot_store.update_status(cluster)

        except StoreError as err:
            await self._log(ClusterSyncError, cluster.name, f"Update status of cluster {cluster.name} failed: {err}")

    async def _log(
        self,
        model: type[ClusterSyncInfo | ClusterSyncWarning | ClusterSyncError],
        cluster: str,
        message: str,
    ) -> None:
        await self._logger.log(
            model(
                message=message,
                cluster=cluster,
            )
        )
