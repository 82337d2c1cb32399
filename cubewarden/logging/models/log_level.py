from __future__ import annotations
from enum import Enum
from typing import Literal

LogLevelName = Literal[
    'trace',
    'debug',
    'info',
    'warn',
    'error',
    'critical',
    'fatal'
]


class LogLevel(Enum):
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    FATAL = 'FATAL'

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def to_level(cls, level_name: LogLevelName) -> LogLevel:
        """Resolve a level name case-insensitively, falling back to INFO."""
        try:
            return cls(level_name.upper())

        except ValueError:
            return LogLevel.INFO


_SEVERITY = {level: order for order, level in enumerate(LogLevel)}
