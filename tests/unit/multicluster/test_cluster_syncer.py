"""
Tests for the pivot-side ClusterSyncer.
"""

import asyncio

import pytest

from cubewarden.controller import Request
from cubewarden.models import (
    ClusterConfig,
    ClusterSpec,
    ClusterState,
    ObjectKey,
    get_cluster_status,
    new_cluster,
)
from cubewarden.models.constants import CLUSTER_KIND
from cubewarden.multicluster import ClusterRegistry, ClusterSyncer
from cubewarden.store import MemoryStore


async def wait_until(condition, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")

        await asyncio.sleep(0.005)


class TestClusterSyncer:
    """Test registering and deregistering sessions from Cluster records."""

    @pytest.mark.asyncio
    async def test_registers_existing_and_new_clusters(self, pivot_store: MemoryStore):
        """Records present at start and created later both get sessions."""
        await pivot_store.create(
            new_cluster("member-1", ClusterSpec(api_endpoint="https://member-1:6443", is_member_cluster=True))
        )
        configs: dict[str, ClusterConfig] = {}

        def client_factory(name: str, config: ClusterConfig) -> MemoryStore:
            configs[name] = config
            return MemoryStore(name)

        registry = ClusterRegistry()
        syncer = ClusterSyncer(
            registry,
            pivot_store,
            client_factory,
            scout_config={"initial_delay": 60.0},
        )
        stop = asyncio.Event()
        task = asyncio.create_task(syncer.run(stop))

        await wait_until(lambda: "member-1" in registry)
        await pivot_store.create(new_cluster("member-2"))
        await wait_until(lambda: "member-2" in registry)
        await wait_until(lambda: len(pivot_store.actions_for("update_status", CLUSTER_KIND)) >= 2)

        session = registry.get("member-1")
        assert session.health_monitor.started
        assert configs["member-1"].api_endpoint == "https://member-1:6443"

        cluster = await pivot_store.get(CLUSTER_KIND, ObjectKey("member-1"))
        assert get_cluster_status(cluster).state == ClusterState.PROCESSING

        stop.set()
        await task

        for name in registry.names():
            registry.delete(name)

    @pytest.mark.asyncio
    async def test_deleted_record_closes_session(self, pivot_store: MemoryStore):
        """Deleting a Cluster record removes its session and stops its Scout."""
        await pivot_store.create(new_cluster("member-1"))

        registry = ClusterRegistry()
        syncer = ClusterSyncer(
            registry,
            pivot_store,
            lambda name, config: MemoryStore(name),
            scout_config={"initial_delay": 60.0},
        )
        stop = asyncio.Event()
        task = asyncio.create_task(syncer.run(stop))

        await wait_until(lambda: "member-1" in registry)
        session = registry.get("member-1")

        await pivot_store.delete(CLUSTER_KIND, ObjectKey("member-1"))
        await wait_until(lambda: "member-1" not in registry)

        assert session.closed
        await asyncio.wait_for(session.health_monitor.task, timeout=1)

        stop.set()
        await task

    @pytest.mark.asyncio
    async def test_failed_connection_marks_init_failed_and_retries(self, pivot_store: MemoryStore):
        """A client factory failure records initFailed and is retried with backoff."""
        await pivot_store.create(new_cluster("member-1"))
        attempts = 0

        async def client_factory(name: str, config: ClusterConfig) -> MemoryStore:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise ConnectionError("connection refused")
            return MemoryStore(name)

        registry = ClusterRegistry()
        syncer = ClusterSyncer(
            registry,
            pivot_store,
            client_factory,
            with_scout=False,
            retry_base_delay=0.01,
        )
        stop = asyncio.Event()
        task = asyncio.create_task(syncer.run(stop))

        await wait_until(lambda: len(pivot_store.actions_for("update_status", CLUSTER_KIND)) >= 2)

        states = [
            get_cluster_status(action.object).state
            for action in pivot_store.actions_for("update_status", CLUSTER_KIND)
        ]
        assert states[:2] == [ClusterState.INIT_FAILED, ClusterState.PROCESSING]
        assert not registry.get("member-1").health_monitor.started

        stop.set()
        await task
        registry.delete("member-1")

    @pytest.mark.asyncio
    async def test_missing_session_on_delete_is_not_an_error(self, pivot_store: MemoryStore):
        registry = ClusterRegistry()
        syncer = ClusterSyncer(registry, pivot_store, lambda name, config: MemoryStore(name))

        await syncer.reconcile(Request(CLUSTER_KIND, ObjectKey("gone")))

        assert len(registry) == 0
