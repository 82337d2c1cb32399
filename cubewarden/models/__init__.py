from .cluster import (
    ClusterConfig as ClusterConfig,
    ClusterSpec as ClusterSpec,
    ClusterState as ClusterState,
    ClusterStatus as ClusterStatus,
    ClusterType as ClusterType,
    get_cluster_spec as get_cluster_spec,
    get_cluster_status as get_cluster_status,
    new_cluster as new_cluster,
    set_cluster_status as set_cluster_status,
)
from .heartbeat import Heartbeat as Heartbeat
from .message import Message as Message
from .resource import (
    ObjectKey as ObjectKey,
    ObjectMeta as ObjectMeta,
    Resource as Resource,
    new_resource as new_resource,
)
