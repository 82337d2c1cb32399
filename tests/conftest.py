"""
Shared fixtures for cubewarden tests.

Log output is raised to FATAL for every test so runs stay quiet; tests
that assert on log output lower it themselves.
"""

import pytest

from cubewarden.logging import LoggingConfig
from cubewarden.models import ObjectKey, new_cluster
from cubewarden.store import MemoryStore


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging():
    config = LoggingConfig()
    config.update(log_level="fatal")
    yield
    config.update(log_level="info")


@pytest.fixture
def pivot_store() -> MemoryStore:
    return MemoryStore("pivot")


@pytest.fixture
def local_store() -> MemoryStore:
    return MemoryStore("local")


@pytest.fixture
def cluster_factory(pivot_store: MemoryStore):
    """Create Cluster records in the pivot store."""

    async def create_cluster(name: str = "member-1"):
        return await pivot_store.create(new_cluster(name))

    return create_cluster


@pytest.fixture
def cluster_key() -> ObjectKey:
    return ObjectKey(name="member-1")
