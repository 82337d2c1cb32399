from .deletion import delete_local as delete_local
from .errors import (
    MalformedAnnotationError as MalformedAnnotationError,
    SyncError as SyncError,
    UnsupportedKindError as UnsupportedKindError,
)
from .gc import Gc as Gc
from .manager import (
    SyncManager as SyncManager,
    sync_predicate as sync_predicate,
)
from .predicates import (
    is_sync_resource as is_sync_resource,
    parse_bool as parse_bool,
)
from .resources import (
    SYNC_KINDS as SYNC_KINDS,
    SyncKind as SyncKind,
    get_sync_kind as get_sync_kind,
)
from .sync_engine import (
    StalenessCheck as StalenessCheck,
    SyncAction as SyncAction,
    SyncEngine as SyncEngine,
    parse_tracking as parse_tracking,
    trim_object_meta as trim_object_meta,
)
