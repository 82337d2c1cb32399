from dataclasses import dataclass
from enum import Enum

from cubewarden.models import Resource


class EventType(str, Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(slots=True)
class WatchEvent:
    type: EventType
    object: Resource
    old_object: Resource | None = None
