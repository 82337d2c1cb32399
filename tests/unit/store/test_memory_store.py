"""
Tests for the in-process declarative store.
"""

import asyncio

import pytest

from cubewarden.models import ObjectKey, new_resource
from cubewarden.store import (
    AlreadyExistsError,
    ConflictError,
    EventType,
    InvalidObjectError,
    LabelSelector,
    MemoryStore,
    NotFoundError,
)


class TestCreateAndGet:
    """Test create/get semantics."""

    @pytest.mark.asyncio
    async def test_create_assigns_store_fields(self, local_store: MemoryStore):
        """Create assigns uid, resource version and creation timestamp."""
        created = await local_store.create(new_resource("Role", "r1", namespace="ns"))

        assert created.metadata.uid
        assert created.metadata.resource_version == "1"
        assert created.metadata.creation_timestamp is not None

        fetched = await local_store.get("Role", ObjectKey("r1", "ns"))
        assert fetched == created

    @pytest.mark.asyncio
    async def test_create_rejects_resource_version(self, local_store: MemoryStore):
        """Objects carrying a resource version cannot be created."""
        obj = new_resource("Role", "r1", namespace="ns")
        obj.metadata.resource_version = "42"

        with pytest.raises(InvalidObjectError):
            await local_store.create(obj)

    @pytest.mark.asyncio
    async def test_duplicate_create(self, local_store: MemoryStore):
        """Creating an existing identity raises AlreadyExistsError."""
        await local_store.create(new_resource("Role", "r1", namespace="ns"))

        with pytest.raises(AlreadyExistsError):
            await local_store.create(new_resource("Role", "r1", namespace="ns"))

    @pytest.mark.asyncio
    async def test_get_missing(self, local_store: MemoryStore):
        """Missing objects raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await local_store.get("Role", ObjectKey("r1", "ns"))

    @pytest.mark.asyncio
    async def test_returned_objects_are_copies(self, local_store: MemoryStore):
        """Mutating a returned object does not touch the stored one."""
        created = await local_store.create(new_resource("Role", "r1", labels={"a": "1"}))
        created.labels["a"] = "2"

        fetched = await local_store.get("Role", ObjectKey("r1"))
        assert fetched.labels["a"] == "1"


class TestUpdate:
    """Test optimistic concurrency on update."""

    @pytest.mark.asyncio
    async def test_update_bumps_version_and_keeps_identity(self, local_store: MemoryStore):
        """Update bumps the resource version and preserves uid and status."""
        created = await local_store.create(new_resource("Cluster", "c1"))
        created.status = {"state": "normal"}
        created = await local_store.update_status(created)

        created.spec = {"description": "changed"}
        updated = await local_store.update(created)

        assert updated.metadata.uid == created.metadata.uid
        assert int(updated.metadata.resource_version) > int(created.metadata.resource_version)
        assert updated.spec == {"description": "changed"}
        assert updated.status == {"state": "normal"}

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, local_store: MemoryStore):
        """An update carrying an old resource version raises ConflictError."""
        created = await local_store.create(new_resource("Role", "r1"))
        await local_store.update(created.copy())

        with pytest.raises(ConflictError):
            await local_store.update(created)

    @pytest.mark.asyncio
    async def test_update_status_only_changes_status(self, local_store: MemoryStore):
        """update_status ignores spec changes."""
        created = await local_store.create(new_resource("Cluster", "c1", spec={"a": 1}))
        created.spec = {"a": 2}
        created.status = {"state": "normal"}

        updated = await local_store.update_status(created)

        assert updated.spec == {"a": 1}
        assert updated.status == {"state": "normal"}


class TestListAndDelete:
    """Test list filtering and delete."""

    @pytest.mark.asyncio
    async def test_list_with_selector(self, local_store: MemoryStore):
        """Label selectors filter listed objects."""
        await local_store.create(new_resource("Role", "a", labels={"team": "x"}))
        await local_store.create(new_resource("Role", "b", labels={"team": "y"}))
        await local_store.create(new_resource("Role", "c"))

        names = [obj.name for obj in await local_store.list("Role", selector="!team")]
        assert names == ["c"]

        names = [obj.name for obj in await local_store.list("Role", selector="team=x")]
        assert names == ["a"]

    @pytest.mark.asyncio
    async def test_delete_missing(self, local_store: MemoryStore):
        """Deleting an absent object raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await local_store.delete("Role", ObjectKey("missing"))

    @pytest.mark.asyncio
    async def test_fail_next_injects_errors(self, local_store: MemoryStore):
        """fail_next raises the configured error for the next matching call only."""
        await local_store.create(new_resource("Role", "r1"))
        local_store.fail_next("get", ConnectionError("boom"), kind="Role")

        with pytest.raises(ConnectionError):
            await local_store.get("Role", ObjectKey("r1"))

        assert (await local_store.get("Role", ObjectKey("r1"))).name == "r1"


class TestWatch:
    """Test watch event fan-out."""

    @pytest.mark.asyncio
    async def test_watch_receives_mutations(self, local_store: MemoryStore):
        """Every mutation after subscription is delivered in order."""
        watch = local_store.watch("Role")

        created = await local_store.create(new_resource("Role", "r1"))
        await local_store.update(created)
        await local_store.delete("Role", ObjectKey("r1"))
        watch.stop()

        events = [event async for event in watch]

        assert [event.type for event in events] == [
            EventType.ADDED,
            EventType.MODIFIED,
            EventType.DELETED,
        ]
        assert events[1].old_object is not None


class TestLabelSelector:
    """Test selector parsing."""

    def test_parse_terms(self):
        selector = LabelSelector.parse("a, !b, c=1, d==2, e!=3")

        assert selector.matches({"a": "x", "c": "1", "d": "2", "e": "4"})
        assert not selector.matches({"a": "x", "b": "y", "c": "1", "d": "2"})
        assert not selector.matches({"a": "x", "c": "1", "d": "2", "e": "3"})

    def test_empty_selector_matches_everything(self):
        selector = LabelSelector.parse("")

        assert selector.empty()
        assert selector.matches({})

    def test_invalid_selector(self):
        with pytest.raises(ValueError):
            LabelSelector.parse("=value")
