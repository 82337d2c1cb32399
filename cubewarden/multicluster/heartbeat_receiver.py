from __future__ import annotations

import msgspec

from cubewarden.logging import Logger
from cubewarden.models import Heartbeat

from .errors import InvalidHeartbeatError
from .logging_models import HeartbeatDebug
from .registry import ClusterRegistry


class HeartbeatReceiver:
    """
    Routes heartbeats reported by member agents to their cluster's Scout.

    Raises ClusterNotFoundError for clusters that are not registered, so
    the report handler in front of it can answer with a not-found status.
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        logger: Logger | None = None,
    ) -> None:
        self._registry = registry
        self._logger = logger or Logger()

    async def receive(self, heartbeat: Heartbeat) -> None:
        scout = self._registry.get(heartbeat.cluster).health_monitor

        await self._logger.log(
            HeartbeatDebug(
                message=f"Receive heartbeat from cluster {heartbeat.cluster}",
                cluster=heartbeat.cluster,
                report_time=heartbeat.report_time.isoformat(),
            )
        )

        await scout.receiver.put(heartbeat)

    async def receive_raw(self, data: bytes) -> Heartbeat:
        try:
            heartbeat = Heartbeat.load(data)

        except msgspec.DecodeError as err:
            raise InvalidHeartbeatError(f"malformed heartbeat: {err}") from err

        await self.receive(heartbeat)

        return heartbeat
