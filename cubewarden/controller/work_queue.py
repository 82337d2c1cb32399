"""
Deduplicating work queue with per-key backoff.

A key is handed to at most one worker at a time. Adding a key that is
already queued is a no-op; adding a key that is being processed marks
it dirty so it is queued again once the worker calls done().
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Generic, Hashable, TypeVar

from cubewarden.reliability import JitterStrategy, calculate_jittered_delay

K = TypeVar("K", bound=Hashable)


class WorkQueue(Generic[K]):
    def __init__(
        self,
        name: str,
        retry_base_delay: float = 0.005,
        retry_max_delay: float = 1000.0,
    ) -> None:
        self.name = name
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay

        self._queue: deque[K] = deque()
        self._dirty: set[K] = set()
        self._processing: set[K] = set()
        self._failures: dict[K, int] = {}
        self._timers: set[asyncio.TimerHandle] = set()

        self._ready = asyncio.Event()
        self._shutting_down = False

    def __len__(self) -> int:
        return len(self._queue)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def add(self, key: K) -> None:
        if self._shutting_down or key in self._dirty:
            return

        self._dirty.add(key)

        if key in self._processing:
            return

        self._queue.append(key)
        self._ready.set()

    def add_after(self, key: K, delay: float) -> None:
        if self._shutting_down:
            return

        if delay <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle | None = None

        def fire() -> None:
            self._timers.discard(handle)
            self.add(key)

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)

    def add_rate_limited(self, key: K) -> None:
        failures = self._failures.get(key, 0)
        self._failures[key] = failures + 1

        self.add_after(
            key,
            calculate_jittered_delay(
                failures,
                base_delay=self._retry_base_delay,
                max_delay=self._retry_max_delay,
                jitter=JitterStrategy.NONE,
            ),
        )

    def forget(self, key: K) -> None:
        self._failures.pop(key, None)

    def num_requeues(self, key: K) -> int:
        return self._failures.get(key, 0)

    async def get(self) -> K | None:
        """Wait for the next key. Returns None once the queue shuts down."""
        while not self._queue:
            if self._shutting_down:
                return None

            self._ready.clear()
            await self._ready.wait()

        key = self._queue.popleft()
        self._processing.add(key)
        self._dirty.discard(key)

        return key

    def done(self, key: K) -> None:
        self._processing.discard(key)

        if key in self._dirty and not self._shutting_down:
            self._queue.append(key)
            self._ready.set()

    def shutdown(self) -> None:
        self._shutting_down = True

        for handle in self._timers:
            handle.cancel()

        self._timers.clear()
        self._queue.clear()
        self._ready.set()
