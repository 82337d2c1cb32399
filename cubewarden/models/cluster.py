"""
Cluster registration records.

A Cluster resource lives in the pivot store, one per managed cluster.
Its status carries the health state written by that cluster's Scout.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .constants import CLUSTER_API_VERSION, CLUSTER_KIND
from .resource import ObjectMeta, Resource


class ClusterState(str, Enum):
    """Health/lifecycle state of a managed cluster."""
    INIT_FAILED = "initFailed"
    RECONNECTED_FAILED = "reconnectedFailed"
    PROCESSING = "processing"        # Registered, no heartbeat seen yet
    DELETING = "deleting"
    NORMAL = "normal"                # Heartbeat seen within the wait timeout
    ABNORMAL = "abnormal"            # Wait timeout elapsed without heartbeat


class ClusterType(Enum):
    """Role of a registered cluster relative to this process."""
    LOCAL = "local"
    PIVOT = "pivot"
    MEMBER = "member"


@dataclass(slots=True)
class ClusterConfig:
    """Connection parameters for a cluster's declarative store."""
    api_endpoint: str = ""
    kubeconfig: str = ""


@dataclass(slots=True)
class ClusterSpec:
    kubeconfig: str = ""
    api_endpoint: str = ""
    is_member_cluster: bool = False
    is_writable: bool = True
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "kubeconfig": self.kubeconfig,
            "kubernetesAPIEndpoint": self.api_endpoint,
            "isMemberCluster": self.is_member_cluster,
            "isWritable": self.is_writable,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterSpec:
        return cls(
            kubeconfig=data.get("kubeconfig", ""),
            api_endpoint=data.get("kubernetesAPIEndpoint", ""),
            is_member_cluster=bool(data.get("isMemberCluster", False)),
            is_writable=bool(data.get("isWritable", True)),
            description=data.get("description", ""),
        )

    def to_config(self) -> ClusterConfig:
        return ClusterConfig(
            api_endpoint=self.api_endpoint,
            kubeconfig=self.kubeconfig,
        )


@dataclass(slots=True)
class ClusterStatus:
    state: ClusterState | None = None
    reason: str = ""
    last_heartbeat: datetime.datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        status: dict[str, Any] = {"reason": self.reason}

        if self.state is not None:
            status["state"] = self.state.value

        if self.last_heartbeat is not None:
            status["lastHeartbeat"] = self.last_heartbeat.isoformat()

        return status

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterStatus:
        state = data.get("state")
        last_heartbeat = data.get("lastHeartbeat")

        return cls(
            state=ClusterState(state) if state else None,
            reason=data.get("reason", ""),
            last_heartbeat=(
                datetime.datetime.fromisoformat(last_heartbeat)
                if last_heartbeat else None
            ),
        )


def new_cluster(name: str, spec: ClusterSpec | None = None) -> Resource:
    return Resource(
        kind=CLUSTER_KIND,
        api_version=CLUSTER_API_VERSION,
        metadata=ObjectMeta(name=name),
        spec=(spec or ClusterSpec()).to_dict(),
    )


def get_cluster_spec(cluster: Resource) -> ClusterSpec:
    return ClusterSpec.from_dict(cluster.spec)


def get_cluster_status(cluster: Resource) -> ClusterStatus:
    return ClusterStatus.from_dict(cluster.status)


def set_cluster_status(cluster: Resource, status: ClusterStatus) -> None:
    cluster.status = status.to_dict()
