from enum import Enum
from typing import Any, Dict

import msgspec

from .log_level import LogLevel


class Entry(msgspec.Struct, kw_only=True):
    """
    Base of every structured log record.

    Each subsystem subclasses it with a fixed level and the fields that
    identify what the record is about (cluster, kind, namespace, name).
    Those fields are available to the console template by name.
    """
    message: str | None = None
    tags: set[str] = msgspec.field(
        default_factory=set,
    )
    level: LogLevel

    def to_template(
        self,
        template: str,
        context: Dict[str, Any] | None = None,
    ) -> str:
        fields = {
            name: value.value if isinstance(value, Enum) else value
            for name, value in msgspec.structs.asdict(self).items()
        }

        if context:
            fields.update(context)

        return template.format(**fields)
