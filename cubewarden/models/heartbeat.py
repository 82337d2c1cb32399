import datetime

import msgspec

from .message import Message


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Heartbeat(Message, kw_only=True):
    """
    Liveness report sent by a member agent to the pivot.

    The pivot routes each heartbeat to the Scout of the named cluster.
    Report times are normalized to UTC; a time without an offset is
    taken as UTC.
    """
    cluster: str
    report_time: datetime.datetime = msgspec.field(default_factory=_utc_now)

    def __post_init__(self):
        if self.report_time.tzinfo is None:
            self.report_time = self.report_time.replace(tzinfo=datetime.timezone.utc)

        else:
            self.report_time = self.report_time.astimezone(datetime.timezone.utc)
