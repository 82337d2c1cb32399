"""
Cluster registry.

Tracks one ClusterSession per managed cluster. The map is the only state
shared between the pivot's controllers, the heartbeat intake and request
handlers, and is guarded by a single lock. Callers that iterate over
clusters take a snapshot instead of holding the lock. Any thread may
call into the registry; sessions set their stop event on their own loop.
"""

from __future__ import annotations

import asyncio
import threading

from cubewarden.logging import Logger
from cubewarden.models import ClusterState, ClusterType
from cubewarden.store import ResourceStore

from .errors import (
    ClusterAbnormalError,
    ClusterExistsError,
    ClusterNotFoundError,
    InvalidSessionError,
)
from .logging_models import RegistryInfo, RegistryWarning
from .scout import Scout
from .session import ClusterSession, ClusterView


class ClusterRegistry:
    """
    Registry of live cluster sessions keyed by cluster name.

    Example usage:
        registry = ClusterRegistry()
        registry.add("member-1", session)

        client = registry.get_client("member-1")  # raises if abnormal
        registry.delete("member-1")               # closes the session
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._sessions: dict[str, ClusterSession] = {}
        self._lock = threading.RLock()
        self._logger = logger or Logger()
        self._pending_logs: set[asyncio.Task] = set()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def add(self, name: str, session: ClusterSession | None) -> None:
        """
        Register a session under name.

        Raises:
            InvalidSessionError: session is missing or incomplete
            ClusterExistsError: a session is already registered under name
        """
        if session is None:
            raise InvalidSessionError(name, "session is required")

        if session.store_client is None or session.health_monitor is None:
            raise InvalidSessionError(name, "session requires a store client and a health monitor")

        with self._lock:
            if name in self._sessions:
                raise ClusterExistsError(name)

            self._sessions[name] = session
            count = len(self._sessions)

        self._log(
            RegistryInfo(
                message=f"Cluster {name} added to registry",
                cluster=name,
                cluster_count=count,
            )
        )

    def get(self, name: str) -> ClusterSession:
        with self._lock:
            session = self._sessions.get(name)

        if session is None:
            raise ClusterNotFoundError(name)

        return session

    def get_client(self, name: str) -> ResourceStore:
        """
        Return the store client of a healthy cluster.

        Raises:
            ClusterNotFoundError: no session is registered under name
            ClusterAbnormalError: the cluster's monitor reports it abnormal
        """
        session = self.get(name)

        if session.health_monitor.cluster_health() == ClusterState.ABNORMAL:
            raise ClusterAbnormalError(name)

        return session.store_client

    def delete(self, name: str) -> None:
        """
        Remove a session and close its stop event.

        Background tasks observing the stop event are expected to exit
        on their own; nothing else is stopped here.
        """
        with self._lock:
            session = self._sessions.get(name)
            if session is None:
                raise ClusterNotFoundError(name, operation="delete")

            session.close()
            del self._sessions[name]
            count = len(self._sessions)

        self._log(
            RegistryWarning(
                message=f"Cluster {name} removed from registry",
                cluster=name,
                cluster_count=count,
            )
        )

    def snapshot(self, include_local: bool = False) -> dict[str, ClusterView]:
        with self._lock:
            sessions = list(self._sessions.values())

        return {
            session.name: session.view()
            for session in sessions
            if include_local or session.cluster_type != ClusterType.LOCAL
        }

    def list_by_type(self, cluster_type: ClusterType) -> list[ClusterView]:
        with self._lock:
            sessions = list(self._sessions.values())

        return [
            session.view()
            for session in sessions
            if session.cluster_type == cluster_type
        ]

    def pivot_cluster(self) -> ClusterSession:
        with self._lock:
            for session in self._sessions.values():
                if session.cluster_type == ClusterType.PIVOT:
                    return session

        raise ClusterNotFoundError("pivot", operation="pivot_cluster")

    def scout_for(self, name: str) -> Scout:
        """Start the cluster's Scout if it is not running yet and return it."""
        scout = self.get(name).health_monitor
        scout.start()

        return scout

    def _log(self, entry: RegistryInfo | RegistryWarning) -> None:
        try:
            loop = asyncio.get_running_loop()

        except RuntimeError:
            return

        task = loop.create_task(self._logger.log(entry))
        self._pending_logs.add(task)
        task.add_done_callback(self._pending_logs.discard)
