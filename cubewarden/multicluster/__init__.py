from .cluster_syncer import (
    ClientFactory as ClientFactory,
    ClusterSyncer as ClusterSyncer,
)
from .errors import (
    ClusterAbnormalError as ClusterAbnormalError,
    ClusterExistsError as ClusterExistsError,
    ClusterNotFoundError as ClusterNotFoundError,
    InvalidHeartbeatError as InvalidHeartbeatError,
    InvalidSessionError as InvalidSessionError,
    RegistryError as RegistryError,
)
from .heartbeat_receiver import HeartbeatReceiver as HeartbeatReceiver
from .registry import ClusterRegistry as ClusterRegistry
from .scout import Scout as Scout
from .session import (
    ClusterSession as ClusterSession,
    ClusterView as ClusterView,
)
