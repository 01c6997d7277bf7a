"""Failure classification for command exchanges.

Decides whether a failed exchange means the link is gone (drop the
connection and let the reconnect loop reopen it) or only that one request
was rejected (leave the connection alone).
"""

from enum import Enum

import serial

from robotarm.core.exceptions import RobotArmError


class FaultKind(Enum):
    """Outcome of classifying a failure."""
    LINK = "link"
    REQUEST = "request"


def is_link_fault(error: BaseException) -> bool:
    """Return True if ``error`` means the serial link is unusable.

    Backend errors answer through their own ``is_link_fault()`` predicate.
    Raw pyserial or OS errors that escaped the transport wrapper are link
    faults as well; anything else is request-level.
    """
    if isinstance(error, RobotArmError):
        return error.is_link_fault()
    return isinstance(error, (serial.SerialException, OSError))


def classify(error: BaseException) -> FaultKind:
    return FaultKind.LINK if is_link_fault(error) else FaultKind.REQUEST
