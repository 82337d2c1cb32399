from .errors import (
    AlreadyExistsError as AlreadyExistsError,
    ConflictError as ConflictError,
    InvalidObjectError as InvalidObjectError,
    NotFoundError as NotFoundError,
    StoreError as StoreError,
    is_already_exists as is_already_exists,
    is_conflict as is_conflict,
    is_not_found as is_not_found,
)
from .events import (
    EventType as EventType,
    WatchEvent as WatchEvent,
)
from .memory import (
    MemoryStore as MemoryStore,
    MemoryWatch as MemoryWatch,
    StoreAction as StoreAction,
)
from .selectors import (
    LabelSelector as LabelSelector,
    Requirement as Requirement,
    SelectorOperator as SelectorOperator,
)
from .store import (
    ResourceStore as ResourceStore,
    Watch as Watch,
)
