"""
Logging models for the sync manager and the orphan sweeper.
"""

from cubewarden.logging.models import Entry, LogLevel


class SyncDebug(Entry, kw_only=True):
    kind: str
    namespace: str = ""
    name: str = ""
    level: LogLevel = LogLevel.DEBUG


class SyncInfo(Entry, kw_only=True):
    kind: str
    namespace: str = ""
    name: str = ""
    action: str
    level: LogLevel = LogLevel.INFO


class SyncFailure(Entry, kw_only=True):
    kind: str
    namespace: str = ""
    name: str = ""
    action: str
    level: LogLevel = LogLevel.ERROR


class GcInfo(Entry, kw_only=True):
    kind: str
    namespace: str = ""
    name: str = ""
    level: LogLevel = LogLevel.INFO


class GcWarning(Entry, kw_only=True):
    kind: str
    namespace: str = ""
    name: str = ""
    level: LogLevel = LogLevel.WARN


class SyncManagerInfo(Entry, kw_only=True):
    kinds: int
    level: LogLevel = LogLevel.INFO
