from __future__ import annotations

import asyncio
from dataclasses import dataclass

from cubewarden.models import ClusterConfig, ClusterType
from cubewarden.store import ResourceStore

from .errors import InvalidSessionError
from .scout import Scout


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()

    except RuntimeError:
        return None


@dataclass(slots=True, frozen=True)
class ClusterView:
    """Lightweight copy of a session handed out by registry snapshots."""
    name: str
    config: ClusterConfig
    client: ResourceStore
    cluster_type: ClusterType = ClusterType.MEMBER


class ClusterSession:
    """
    One live connection to a managed cluster.

    The session owns its store client and its Scout. The stop event is
    shared with every background task working on behalf of the cluster;
    setting it is the only teardown mechanism.
    """

    def __init__(
        self,
        name: str,
        store_client: ResourceStore | None,
        config: ClusterConfig | None,
        health_monitor: Scout | None,
        stop: asyncio.Event,
        cluster_type: ClusterType = ClusterType.MEMBER,
    ) -> None:
        if store_client is None:
            raise InvalidSessionError(name, "store client is required")

        if health_monitor is None:
            raise InvalidSessionError(name, "health monitor is required")

        if health_monitor.stop_event is not stop:
            raise InvalidSessionError(
                name,
                "health monitor must observe the session stop event",
            )

        self.name = name
        self.store_client = store_client
        self.config = config or ClusterConfig()
        self.health_monitor = health_monitor
        self.stop = stop
        self.cluster_type = cluster_type

        self._loop = _running_loop()
        self._closing = False

    @property
    def closed(self) -> bool:
        return self._closing or self.stop.is_set()

    def close(self) -> None:
        """
        Set the stop event once.

        Called off the thread of the session's event loop, the event is
        set on that loop through call_soon_threadsafe.
        """
        if self.closed:
            return

        self._closing = True

        if self._loop is None or self._loop.is_closed() or _running_loop() is self._loop:
            self.stop.set()

        else:
            self._loop.call_soon_threadsafe(self.stop.set)

    def view(self) -> ClusterView:
        return ClusterView(
            name=self.name,
            config=self.config,
            client=self.store_client,
            cluster_type=self.cluster_type,
        )
