"""Custom exception hierarchy for the robot arm backend.

Errors fall into two families. Link-level errors (``SerialLinkError`` and its
subclasses) mean the serial connection itself is unusable and must be dropped.
Request-level errors (validation, protocol and parse failures) reject a single
request and leave the connection alone. Each exception answers the question
through ``is_link_fault()``.
"""

from typing import Any, Optional


class RobotArmError(Exception):
    """Base exception for all robot arm backend errors.

    All custom exceptions inherit from this base class to allow
    catching every backend error with a single except clause.
    """

    def is_link_fault(self) -> bool:
        """Return True if this error means the serial link is unusable."""
        return False


class SerialLinkError(RobotArmError):
    """Serial link failure.

    Raised when an operation on the physical link fails. The connection
    that raised it must be dropped and reopened.

    Attributes:
        port: Serial port identifier (e.g., '/dev/ttyUSB0')
        os_error: Original exception from pyserial or OS (if available)
    """

    def __init__(self, message: str, port: str, os_error: Optional[Exception] = None):
        """Initialize SerialLinkError.

        Args:
            message: Human-readable error description
            port: Serial port identifier
            os_error: Original exception from pyserial/OS
        """
        super().__init__(message)
        self.port = port
        self.os_error = os_error

    def is_link_fault(self) -> bool:
        return True

    def __str__(self) -> str:
        """Format error message with port context."""
        base_msg = super().__str__()
        if self.os_error:
            return f"{base_msg} (port: {self.port}, cause: {self.os_error})"
        return f"{base_msg} (port: {self.port})"


class OpenError(SerialLinkError):
    """Serial device could not be opened."""
    pass


class FlushError(SerialLinkError):
    """Input buffer of the serial device could not be cleared."""
    pass


class WriteError(SerialLinkError):
    """Writing or flushing a command to the serial device failed."""
    pass


class ReadError(SerialLinkError):
    """Reading the response from the serial device failed.

    A plain read timeout is not a ReadError; it ends the response.
    """
    pass


class NotConnectedError(RobotArmError):
    """No live connection is available.

    Raised by the supervisor when the connection slot is empty. The
    background reconnect loop will try again; callers should retry later.
    """

    def __init__(self, message: str = "Serial device not connected"):
        super().__init__(message)


class ValidationError(RobotArmError):
    """Command argument out of range.

    Raised before any I/O is attempted.

    Attributes:
        field: Name of the rejected argument (e.g., 'channel', 'angle')
        value: The rejected value
    """

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class ProtocolError(RobotArmError):
    """Device replied, but not with ``OK``.

    Attributes:
        command: Wire command that was rejected (without newline)
        response: Raw response line from the device
        device_message: Reason text when the reply had the form ``ERROR: <reason>``
    """

    def __init__(self, message: str, command: str, response: str):
        super().__init__(message)
        self.command = command
        self.response = response
        self.device_message = _device_reason(response)

    def __str__(self) -> str:
        """Format error message with command context."""
        base_msg = super().__str__()
        return f"{base_msg} (command: {self.command}, response: {self.response.strip()!r})"


class ParseError(RobotArmError):
    """Device reply to a query could not be parsed.

    Attributes:
        command: Wire command that was sent (without newline)
        response: Raw response line from the device
    """

    def __init__(self, message: str, command: str, response: str):
        super().__init__(message)
        self.command = command
        self.response = response

    def __str__(self) -> str:
        base_msg = super().__str__()
        return f"{base_msg} (command: {self.command}, response: {self.response.strip()!r})"


def _device_reason(response: str) -> Optional[str]:
    line = response.strip()
    if line.upper().startswith("ERROR"):
        _, _, reason = line.partition(":")
        return reason.strip() or None
    return None
