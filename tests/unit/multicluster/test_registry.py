"""
Tests for ClusterRegistry and ClusterSession.

These tests verify that:
1. At most one session exists per cluster name
2. Incomplete sessions are rejected at construction and at add
3. Delete closes the session's stop event and removes it
4. Snapshots are detached copies
5. Client access is gated on cluster health
"""

import asyncio

import pytest

from cubewarden.models import ClusterConfig, ClusterState, ClusterType
from cubewarden.multicluster import (
    ClusterAbnormalError,
    ClusterExistsError,
    ClusterNotFoundError,
    ClusterRegistry,
    ClusterSession,
    InvalidSessionError,
    Scout,
)
from cubewarden.store import MemoryStore


class TestClusterSession:
    """Test session construction invariants."""

    def test_requires_store_client(self, pivot_store: MemoryStore):
        stop = asyncio.Event()
        scout = Scout("member-1", pivot_store, stop)

        with pytest.raises(InvalidSessionError):
            ClusterSession("member-1", None, ClusterConfig(), scout, stop)

    def test_requires_health_monitor(self):
        with pytest.raises(InvalidSessionError):
            ClusterSession("member-1", MemoryStore(), ClusterConfig(), None, asyncio.Event())

    def test_monitor_must_observe_session_stop_event(self, pivot_store: MemoryStore):
        """The Scout must stop with the session it belongs to."""
        scout = Scout("member-1", pivot_store, asyncio.Event())

        with pytest.raises(InvalidSessionError):
            ClusterSession("member-1", MemoryStore(), ClusterConfig(), scout, asyncio.Event())

    def test_close_is_idempotent(self, session_factory):
        session = session_factory()

        session.close()
        session.close()

        assert session.closed


class TestRegistryAdd:
    """Test at-most-one session per name."""

    @pytest.mark.asyncio
    async def test_duplicate_add_fails_and_keeps_existing(self, session_factory):
        """A second add under the same name fails and leaves the first session in place."""
        registry = ClusterRegistry()
        first = session_factory()
        second = session_factory()

        registry.add("member-1", first)

        with pytest.raises(ClusterExistsError):
            registry.add("member-1", second)

        assert registry.get("member-1") is first
        assert not first.closed
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_add_rejects_missing_session(self):
        registry = ClusterRegistry()

        with pytest.raises(InvalidSessionError):
            registry.add("member-1", None)

        assert "member-1" not in registry


class TestRegistryDelete:
    """Test deregistration."""

    @pytest.mark.asyncio
    async def test_delete_closes_stop_event(self, session_factory):
        """Delete closes the session's stop event and forgets the name."""
        registry = ClusterRegistry()
        session = session_factory()
        registry.add("member-1", session)

        registry.delete("member-1")

        assert session.stop.is_set()
        assert "member-1" not in registry

        with pytest.raises(ClusterNotFoundError):
            registry.get("member-1")

    @pytest.mark.asyncio
    async def test_delete_from_worker_thread(self, session_factory):
        """Deleting off the event loop thread still wakes tasks waiting on the session."""
        registry = ClusterRegistry()
        session = session_factory()
        registry.add("member-1", session)
        waiter = asyncio.create_task(session.stop.wait())

        await asyncio.to_thread(registry.delete, "member-1")

        assert session.closed
        assert "member-1" not in registry
        await asyncio.wait_for(waiter, timeout=1)

    @pytest.mark.asyncio
    async def test_delete_missing(self):
        registry = ClusterRegistry()

        with pytest.raises(ClusterNotFoundError):
            registry.delete("member-1")

    @pytest.mark.asyncio
    async def test_name_can_be_reused_after_delete(self, session_factory):
        registry = ClusterRegistry()
        registry.add("member-1", session_factory())
        registry.delete("member-1")

        replacement = session_factory()
        registry.add("member-1", replacement)

        assert registry.get("member-1") is replacement


class TestRegistryViews:
    """Test snapshots and typed lookups."""

    @pytest.mark.asyncio
    async def test_snapshot_is_detached(self, session_factory):
        """Changes to the registry after a snapshot do not affect it."""
        registry = ClusterRegistry()
        registry.add("member-1", session_factory("member-1"))
        registry.add("local", session_factory("local", cluster_type=ClusterType.LOCAL))

        snapshot = registry.snapshot()
        registry.delete("member-1")

        assert set(snapshot) == {"member-1"}
        assert snapshot["member-1"].config.api_endpoint == "https://member-1:6443"
        assert set(registry.snapshot(include_local=True)) == {"local"}

    @pytest.mark.asyncio
    async def test_list_by_type_and_pivot(self, session_factory):
        registry = ClusterRegistry()
        pivot = session_factory("pivot-cluster", cluster_type=ClusterType.PIVOT)
        registry.add("pivot-cluster", pivot)
        registry.add("member-1", session_factory("member-1"))
        registry.add("member-2", session_factory("member-2"))

        members = registry.list_by_type(ClusterType.MEMBER)

        assert sorted(view.name for view in members) == ["member-1", "member-2"]
        assert registry.pivot_cluster() is pivot

    @pytest.mark.asyncio
    async def test_pivot_cluster_missing(self, session_factory):
        registry = ClusterRegistry()
        registry.add("member-1", session_factory("member-1"))

        with pytest.raises(ClusterNotFoundError):
            registry.pivot_cluster()


class TestRegistryClientAccess:
    """Test health-gated client access and scout start."""

    @pytest.mark.asyncio
    async def test_get_client_of_healthy_cluster(self, session_factory):
        registry = ClusterRegistry()
        session = session_factory()
        registry.add("member-1", session)

        assert registry.get_client("member-1") is session.store_client

    @pytest.mark.asyncio
    async def test_get_client_of_abnormal_cluster(self, session_factory, monkeypatch):
        """Abnormal clusters refuse client access but stay reachable through get."""
        registry = ClusterRegistry()
        session = session_factory()
        registry.add("member-1", session)

        monkeypatch.setattr(session.health_monitor, "cluster_health", lambda: ClusterState.ABNORMAL)

        with pytest.raises(ClusterAbnormalError):
            registry.get_client("member-1")

        assert registry.get("member-1") is session

    @pytest.mark.asyncio
    async def test_scout_for_starts_once(self, session_factory):
        """scout_for starts the Scout through its single-shot guard."""
        registry = ClusterRegistry()
        session = session_factory(initial_delay=60.0)
        registry.add("member-1", session)

        scout = registry.scout_for("member-1")
        task = scout.task

        assert scout.started
        assert registry.scout_for("member-1").task is task
        assert scout.start() is False

        registry.delete("member-1")
        await asyncio.wait_for(task, timeout=1)
