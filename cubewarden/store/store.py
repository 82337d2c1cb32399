"""
Declarative resource store interface.

Both the pivot and every member expose a store with this surface.
Writes are guarded by optimistic concurrency: an update carrying a
resource version that no longer matches the stored one fails with
ConflictError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator

from cubewarden.models import ObjectKey, Resource

from .events import WatchEvent
from .selectors import LabelSelector


class Watch(ABC):

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[WatchEvent]:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...


class ResourceStore(ABC):

    @abstractmethod
    async def get(self, kind: str, key: ObjectKey) -> Resource:
        """Return the stored object or raise NotFoundError."""

    @abstractmethod
    async def list(
        self,
        kind: str,
        namespace: str | None = None,
        selector: str | LabelSelector | None = None,
    ) -> list[Resource]:
        ...

    @abstractmethod
    async def create(self, obj: Resource) -> Resource:
        """Create the object or raise AlreadyExistsError."""

    @abstractmethod
    async def update(self, obj: Resource) -> Resource:
        """Replace metadata and spec, keeping status."""

    @abstractmethod
    async def update_status(self, obj: Resource) -> Resource:
        """Replace only the status of the object."""

    @abstractmethod
    async def delete(self, kind: str, key: ObjectKey) -> None:
        """Delete the object or raise NotFoundError."""

    @abstractmethod
    def watch(self, kind: str) -> Watch:
        """Stream mutations of the kind made after this call."""

    async def close(self) -> None:
        return None
