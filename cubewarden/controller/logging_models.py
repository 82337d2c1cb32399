"""
Logging models for the controller module.

Each model identifies the controller and the object being reconciled.
"""

from cubewarden.logging.models import Entry, LogLevel


class ControllerDebug(Entry, kw_only=True):
    controller: str
    kind: str
    namespace: str = ""
    name: str = ""
    level: LogLevel = LogLevel.DEBUG


class ControllerInfo(Entry, kw_only=True):
    controller: str
    kind: str
    namespace: str = ""
    name: str = ""
    level: LogLevel = LogLevel.INFO


class ControllerError(Entry, kw_only=True):
    controller: str
    kind: str
    namespace: str = ""
    name: str = ""
    requeues: int = 0
    level: LogLevel = LogLevel.ERROR
