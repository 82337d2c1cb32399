"""
Kinds replicated from the pivot cluster to member clusters.
"""

from dataclasses import dataclass

from .errors import UnsupportedKindError


@dataclass(frozen=True, slots=True)
class SyncKind:
    kind: str
    api_version: str
    namespaced: bool = False

    # Deletes of these kinds are blocked on members unless the object
    # carries the force-delete annotation
    protected: bool = False


SYNC_KINDS: tuple[SyncKind, ...] = (
    # k8s resources
    SyncKind("RoleBinding", "rbac.authorization.k8s.io/v1", namespaced=True),
    SyncKind("ClusterRoleBinding", "rbac.authorization.k8s.io/v1"),
    SyncKind("Role", "rbac.authorization.k8s.io/v1", namespaced=True),
    SyncKind("ClusterRole", "rbac.authorization.k8s.io/v1"),
    SyncKind("Namespace", "v1"),
    SyncKind("SubnamespaceAnchor", "hnc.x-k8s.io/v1alpha2", namespaced=True),

    # kubecube resources
    SyncKind("Hotplug", "hotplug.kubecube.io/v1"),
    SyncKind("Tenant", "tenant.kubecube.io/v1", protected=True),
    SyncKind("Project", "tenant.kubecube.io/v1", protected=True),
    SyncKind("User", "user.kubecube.io/v1"),
    SyncKind("CubeResourceQuota", "quota.kubecube.io/v1"),
)

_SYNC_KINDS_BY_NAME = {sync_kind.kind: sync_kind for sync_kind in SYNC_KINDS}


def get_sync_kind(kind: str) -> SyncKind:
    sync_kind = _SYNC_KINDS_BY_NAME.get(kind)
    if sync_kind is None:
        raise UnsupportedKindError(kind)

    return sync_kind
