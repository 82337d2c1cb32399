from .reporter import (
    HeartbeatSink as HeartbeatSink,
    Reporter as Reporter,
)
from .warden import Warden as Warden
