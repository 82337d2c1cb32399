"""
Generic declarative store object model.

Every stored object is a Resource: a kind, identifying metadata, and
free-form spec/status bodies. Store-assigned fields (uid, resource
version, creation timestamp) live on ObjectMeta.
"""

from __future__ import annotations

import copy
import datetime
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ObjectKey:
    """Identity of an object within one kind."""
    name: str
    namespace: str = ""

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name


@dataclass(slots=True)
class ObjectMeta:
    name: str
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    creation_timestamp: datetime.datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class Resource:
    kind: str
    metadata: ObjectMeta
    api_version: str = ""
    spec: dict[str, Any] = field(default_factory=dict)
    status: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(
            name=self.metadata.name,
            namespace=self.metadata.namespace,
        )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def labels(self) -> dict[str, str]:
        return self.metadata.labels

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations

    def copy(self) -> Resource:
        return copy.deepcopy(self)


def new_resource(
    kind: str,
    name: str,
    namespace: str = "",
    api_version: str = "",
    labels: dict[str, str] | None = None,
    annotations: dict[str, str] | None = None,
    spec: dict[str, Any] | None = None,
) -> Resource:
    return Resource(
        kind=kind,
        api_version=api_version,
        metadata=ObjectMeta(
            name=name,
            namespace=namespace,
            labels=dict(labels or {}),
            annotations=dict(annotations or {}),
        ),
        spec=dict(spec or {}),
    )
