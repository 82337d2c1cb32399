import pytest

from cubewarden.models import new_resource
from cubewarden.models.constants import SYNC_ANNOTATION


@pytest.fixture
def synced_object():
    """Build objects of a synced kind, in scope unless told otherwise."""

    def create_object(
        kind: str = "RoleBinding",
        name: str = "r1",
        namespace: str = "ns",
        sync: str | None = "true",
        labels: dict[str, str] | None = None,
        annotations: dict[str, str] | None = None,
        spec: dict | None = None,
    ):
        merged = dict(annotations or {})
        if sync is not None:
            merged[SYNC_ANNOTATION] = sync

        return new_resource(
            kind,
            name,
            namespace=namespace,
            labels=labels,
            annotations=merged,
            spec=spec or {"subjects": [{"kind": "User", "name": "alice"}]},
        )

    return create_object
