"""
Logging models for the multicluster module.

These models are used by ClusterRegistry, Scout, HeartbeatReceiver and
ClusterSyncer. Each one carries the name of the cluster it concerns.
"""

from cubewarden.logging.models import Entry, LogLevel


# =============================================================================
# Registry Logging Models
# =============================================================================

class RegistryInfo(Entry, kw_only=True):
    cluster: str
    cluster_count: int
    level: LogLevel = LogLevel.INFO


class RegistryWarning(Entry, kw_only=True):
    cluster: str
    cluster_count: int
    level: LogLevel = LogLevel.WARN


# =============================================================================
# Scout Logging Models
# =============================================================================

class ScoutDebug(Entry, kw_only=True):
    cluster: str
    state: str
    level: LogLevel = LogLevel.DEBUG


class ScoutInfo(Entry, kw_only=True):
    cluster: str
    state: str
    level: LogLevel = LogLevel.INFO


class ScoutWarning(Entry, kw_only=True):
    cluster: str
    state: str
    last_heartbeat: str | None = None
    level: LogLevel = LogLevel.WARN


class ScoutError(Entry, kw_only=True):
    cluster: str
    state: str
    level: LogLevel = LogLevel.ERROR


# =============================================================================
# Cluster Sync Logging Models
# =============================================================================

class ClusterSyncInfo(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.INFO


class ClusterSyncWarning(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.WARN


class ClusterSyncError(Entry, kw_only=True):
    cluster: str
    level: LogLevel = LogLevel.ERROR


class HeartbeatDebug(Entry, kw_only=True):
    cluster: str
    report_time: str
    level: LogLevel = LogLevel.DEBUG
