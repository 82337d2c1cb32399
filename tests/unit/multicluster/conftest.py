import asyncio

import pytest

from cubewarden.models import ClusterConfig, ClusterType
from cubewarden.multicluster import ClusterSession, Scout
from cubewarden.store import MemoryStore


@pytest.fixture
def session_factory(pivot_store: MemoryStore):
    """Build sessions whose Scout writes to the pivot store."""

    def create_session(
        name: str = "member-1",
        cluster_type: ClusterType = ClusterType.MEMBER,
        client: MemoryStore | None = None,
        **scout_config,
    ) -> ClusterSession:
        stop = asyncio.Event()
        scout = Scout(name, pivot_store, stop, **scout_config)

        return ClusterSession(
            name,
            client or MemoryStore(name),
            ClusterConfig(api_endpoint=f"https://{name}:6443"),
            scout,
            stop,
            cluster_type=cluster_type,
        )

    return create_session
