"""Value types shared by the core and its collaborators."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class SlotState(Enum):
    """Lifecycle of the supervisor's connection slot.

    - EMPTY: No connection; requests fail with NotConnectedError
    - OPENING: A connection is being opened and is not yet usable
    - READY: A live connection can be borrowed
    """
    EMPTY = "empty"
    OPENING = "opening"
    READY = "ready"


class HealthStatus(Enum):
    """Serial link health as reported to callers."""
    CONNECTED = "connected"
    NOT_CONNECTED = "not_connected"


@dataclass(frozen=True)
class ServoPosition:
    """Reported angle of one servo channel.

    Attributes:
        channel: Servo channel (0-5)
        angle: Angle in degrees as reported by the device
    """
    channel: int
    angle: int

    def to_dict(self) -> Dict[str, Any]:
        return {"channel": self.channel, "angle": self.angle}
