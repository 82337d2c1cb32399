"""
Tests for the watch-driven controller.
"""

import asyncio

import pytest

from cubewarden.controller import Controller, EventPredicate, Request, Result
from cubewarden.models import ObjectKey, new_resource
from cubewarden.store import MemoryStore, WatchEvent, EventType


async def wait_until(condition, timeout: float = 2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")

        await asyncio.sleep(0.005)


class TestEventPredicate:
    """Test event filtering."""

    def test_for_all_applies_check_to_new_object(self):
        predicate = EventPredicate.for_all(lambda obj: obj.name.startswith("keep"))
        kept = new_resource("Role", "keep-1")
        dropped = new_resource("Role", "drop-1")

        assert predicate.accepts(WatchEvent(EventType.ADDED, kept))
        assert not predicate.accepts(WatchEvent(EventType.DELETED, dropped))
        assert predicate.accepts(WatchEvent(EventType.MODIFIED, kept, old_object=dropped))
        assert not predicate.accepts(WatchEvent(EventType.MODIFIED, dropped, old_object=kept))


class TestController:
    """Test list, watch and requeue behavior."""

    @pytest.mark.asyncio
    async def test_reconciles_existing_and_new_objects(self, pivot_store: MemoryStore):
        """Objects present at start and created later are both reconciled."""
        await pivot_store.create(new_resource("Role", "existing"))
        seen: list[Request] = []

        async def reconcile(request: Request):
            seen.append(request)

        controller = Controller("roles", pivot_store, "Role", reconcile)
        stop = asyncio.Event()
        task = asyncio.create_task(controller.run(stop))

        await asyncio.wait_for(controller.synced.wait(), timeout=1)
        await pivot_store.create(new_resource("Role", "created"))

        await wait_until(lambda: len(seen) >= 2)
        stop.set()
        await task

        assert {request.name for request in seen} == {"existing", "created"}

    @pytest.mark.asyncio
    async def test_failed_reconcile_is_retried(self, pivot_store: MemoryStore):
        """A reconcile that raises is requeued with backoff until it succeeds."""
        await pivot_store.create(new_resource("Role", "flaky"))
        attempts = 0

        async def reconcile(request: Request):
            nonlocal attempts
            attempts += 1
            if attempts < 3:
                raise ConnectionError("pivot unavailable")

        controller = Controller(
            "roles",
            pivot_store,
            "Role",
            reconcile,
            retry_base_delay=0.001,
            retry_max_delay=0.01,
        )
        stop = asyncio.Event()
        task = asyncio.create_task(controller.run(stop))

        await wait_until(lambda: attempts >= 3)
        stop.set()
        await task

        assert attempts == 3
        assert controller.queue.num_requeues(Request("Role", ObjectKey("flaky"))) == 0

    @pytest.mark.asyncio
    async def test_requeue_result(self, pivot_store: MemoryStore):
        """A Result asking for requeue runs the reconcile again."""
        await pivot_store.create(new_resource("Role", "again"))
        attempts = 0

        async def reconcile(request: Request):
            nonlocal attempts
            attempts += 1
            return Result(requeue=attempts < 2)

        controller = Controller("roles", pivot_store, "Role", reconcile, retry_base_delay=0.001)
        stop = asyncio.Event()
        task = asyncio.create_task(controller.run(stop))

        await wait_until(lambda: attempts >= 2)
        stop.set()
        await task

        assert attempts == 2

    @pytest.mark.asyncio
    async def test_predicate_filters_events(self, pivot_store: MemoryStore):
        """Events rejected by the predicate never reach reconcile."""
        seen: list[str] = []

        async def reconcile(request: Request):
            seen.append(request.name)

        controller = Controller(
            "roles",
            pivot_store,
            "Role",
            reconcile,
            predicate=EventPredicate.for_all(lambda obj: obj.labels.get("sync") == "yes"),
        )
        stop = asyncio.Event()
        task = asyncio.create_task(controller.run(stop))
        await asyncio.wait_for(controller.synced.wait(), timeout=1)

        await pivot_store.create(new_resource("Role", "ignored"))
        await pivot_store.create(new_resource("Role", "wanted", labels={"sync": "yes"}))

        await wait_until(lambda: "wanted" in seen)
        stop.set()
        await task

        assert seen == ["wanted"]
