from __future__ import annotations
import os
from pydantic import BaseModel, StrictBool, StrictStr, StrictInt
from typing import Callable, Dict, Literal, Union

from .time_parser import TimeParser

PrimaryType = Union[str, int, float, bytes, bool]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Env(BaseModel):
    WARDEN_CLUSTER_NAME: StrictStr = "pivot-cluster"
    WARDEN_IS_MEMBER_CLUSTER: StrictBool = False
    WARDEN_IS_WRITABLE: StrictBool = True
    WARDEN_LOCAL_API_ENDPOINT: StrictStr = ""
    WARDEN_LOG_LEVEL: StrictStr = "info"
    WARDEN_LOGS_DIRECTORY: StrictStr | None = None
    WARDEN_LOG_OUTPUT: Literal["stdout", "stderr"] = "stderr"

    # Scout settings
    SCOUT_WAIT_TIMEOUT: StrictStr = "10s"
    SCOUT_INITIAL_DELAY: StrictStr = "10s"
    SCOUT_STATUS_RETRIES: StrictInt = 5

    # Sync settings
    SYNC_WORKERS: StrictInt = 1
    SYNC_RETRY_BASE_DELAY: StrictStr = "0.005s"
    SYNC_RETRY_MAX_DELAY: StrictStr = "1000s"
    SYNC_STALENESS_CHECK: Literal["pivot-vs-local", "disabled"] = "pivot-vs-local"

    # Gc settings
    GC_INTERVAL: StrictStr = "1m"

    # Reporter settings
    REPORTER_PERIOD: StrictStr = "3s"
    REPORTER_REGISTER_INTERVAL: StrictStr = "3s"
    REPORTER_REGISTER_TIMEOUT: StrictStr = "15s"

    @classmethod
    def types_map(cls) -> Dict[str, Callable[[str], PrimaryType]]:
        return {
            "WARDEN_CLUSTER_NAME": str,
            "WARDEN_IS_MEMBER_CLUSTER": _parse_bool,
            "WARDEN_IS_WRITABLE": _parse_bool,
            "WARDEN_LOCAL_API_ENDPOINT": str,
            "WARDEN_LOG_LEVEL": str,
            "WARDEN_LOGS_DIRECTORY": str,
            "WARDEN_LOG_OUTPUT": str,
            # Scout settings
            "SCOUT_WAIT_TIMEOUT": str,
            "SCOUT_INITIAL_DELAY": str,
            "SCOUT_STATUS_RETRIES": int,
            # Sync settings
            "SYNC_WORKERS": int,
            "SYNC_RETRY_BASE_DELAY": str,
            "SYNC_RETRY_MAX_DELAY": str,
            "SYNC_STALENESS_CHECK": str,
            # Gc settings
            "GC_INTERVAL": str,
            # Reporter settings
            "REPORTER_PERIOD": str,
            "REPORTER_REGISTER_INTERVAL": str,
            "REPORTER_REGISTER_TIMEOUT": str,
        }

    def get_scout_config(self) -> dict:
        """Get Scout timing and retry settings in seconds."""
        return {
            'wait_timeout': TimeParser(self.SCOUT_WAIT_TIMEOUT).time,
            'initial_delay': TimeParser(self.SCOUT_INITIAL_DELAY).time,
            'status_retries': self.SCOUT_STATUS_RETRIES,
        }

    def get_sync_config(self) -> dict:
        """Get SyncManager settings."""
        return {
            'workers': self.SYNC_WORKERS,
            'retry_base_delay': TimeParser(self.SYNC_RETRY_BASE_DELAY).time,
            'retry_max_delay': TimeParser(self.SYNC_RETRY_MAX_DELAY).time,
            'staleness_check': self.SYNC_STALENESS_CHECK,
            'gc_interval': TimeParser(self.GC_INTERVAL).time,
        }

    def get_reporter_config(self) -> dict:
        """Get member Reporter settings."""
        return {
            'cluster': self.WARDEN_CLUSTER_NAME,
            'is_member_cluster': self.WARDEN_IS_MEMBER_CLUSTER,
            'is_writable': self.WARDEN_IS_WRITABLE,
            'api_endpoint': self.WARDEN_LOCAL_API_ENDPOINT,
            'period': TimeParser(self.REPORTER_PERIOD).time,
            'register_interval': TimeParser(self.REPORTER_REGISTER_INTERVAL).time,
            'register_timeout': TimeParser(self.REPORTER_REGISTER_TIMEOUT).time,
        }

    def get_logging_config(self) -> dict:
        return {
            'log_level': self.WARDEN_LOG_LEVEL,
            'log_directory': self.WARDEN_LOGS_DIRECTORY or os.getenv("WARDEN_LOGS_DIRECTORY"),
            'log_output': self.WARDEN_LOG_OUTPUT,
        }
