"""
Logging models for the member reporter and the warden agent.
"""

from cubewarden.logging.models import Entry, LogLevel


class ReporterDebug(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.DEBUG


class ReporterInfo(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.INFO


class ReporterWarning(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.WARN


class WardenInfo(Entry, kw_only=True):
    cluster: str
    role: str
    level: LogLevel = LogLevel.INFO


class WardenError(Entry, kw_only=True):
    cluster: str
    role: str
    level: LogLevel = LogLevel.ERROR
