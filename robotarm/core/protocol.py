"""Wire protocol codec for the servo controller firmware.

Commands are newline-terminated ASCII lines. Servo channels are sent as a
single hex digit. Write-style commands are acknowledged with a line reading
exactly ``OK``; ``GET`` is answered with ``SERVO <n>: <angle> degrees``.

Everything in this module is pure: no I/O, no state.

Example:
    >>> AngleCommand(channel=3, angle=90).encode()
    'S3:90\\n'
    >>> parse_angle("SERVO 3: 90 degrees\\n", "GET 3")
    90
"""

from dataclasses import dataclass
from typing import Any, Sequence, Tuple

from robotarm.core.exceptions import ParseError, ProtocolError, ValidationError

NUM_SERVOS = 6
MAX_ANGLE = 180
MAX_PULSE_US = 20000
MAX_DURATION_MS = 65535
MAX_RESPONSE_BYTES = 256

START_COMMAND = "START\n"
STOP_COMMAND = "STOP\n"
OK_RESPONSE = "OK"


def channel_to_hex(channel: int) -> str:
    """Convert channel number to its wire digit ('0'-'9', 'A'-'F')."""
    if channel < 10:
        return chr(ord('0') + channel)
    return chr(ord('A') + channel - 10)


def _require_int(field: str, value: Any, low: int, high: int) -> int:
    # bool is an int subclass, but True is not a servo channel
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid {field}: {value!r} (must be an integer)", field, value)
    if value < low or value > high:
        raise ValidationError(f"Invalid {field}: {value} (must be {low}-{high})", field, value)
    return value


def validate_channel(channel: Any) -> int:
    if isinstance(channel, int) and not isinstance(channel, bool) and channel >= NUM_SERVOS:
        raise ValidationError(f"Invalid servo channel: {channel}", "channel", channel)
    return _require_int("channel", channel, 0, NUM_SERVOS - 1)


def validate_angle(angle: Any) -> int:
    return _require_int("angle", angle, 0, MAX_ANGLE)


def validate_angles(angles: Any) -> Tuple[int, ...]:
    """Validate a pose angle list.

    Every angle is checked; one bad angle rejects the whole list. An empty
    list is rejected as well: the controller answers POSE or MOVE without
    angles with a format error, so it is never sent.

    Raises:
        ValidationError: Not a list, empty, too long, or an angle out of range
    """
    if isinstance(angles, (str, bytes)) or not isinstance(angles, Sequence):
        raise ValidationError(f"Invalid angles: {angles!r} (must be a list)", "angles", angles)
    if not angles:
        raise ValidationError("Invalid angles: at least one angle is required", "angles", angles)
    if len(angles) > NUM_SERVOS:
        raise ValidationError(
            f"Too many servos: {len(angles)} (max {NUM_SERVOS})", "angles", angles
        )
    return tuple(validate_angle(angle) for angle in angles)


@dataclass(frozen=True)
class AngleCommand:
    """Set one servo to an angle in degrees."""
    channel: int
    angle: int

    def __post_init__(self):
        validate_channel(self.channel)
        validate_angle(self.angle)

    def encode(self) -> str:
        return f"S{channel_to_hex(self.channel)}:{self.angle}\n"


@dataclass(frozen=True)
class PwmCommand:
    """Set one servo's raw pulse width in microseconds."""
    channel: int
    pulse_us: int

    def __post_init__(self):
        validate_channel(self.channel)
        _require_int("pulse_us", self.pulse_us, 0, MAX_PULSE_US)

    def encode(self) -> str:
        return f"P{channel_to_hex(self.channel)}:{self.pulse_us}\n"


@dataclass(frozen=True)
class PoseCommand:
    """Set channels 0..len-1 to the given angles at once."""
    angles: Tuple[int, ...]

    def __post_init__(self):
        object.__setattr__(self, "angles", validate_angles(self.angles))

    def encode(self) -> str:
        return f"POSE {_join_angles(self.angles)}\n"


@dataclass(frozen=True)
class MoveCommand:
    """Interpolate channels 0..len-1 to the given angles over a duration."""
    duration_ms: int
    angles: Tuple[int, ...]

    def __post_init__(self):
        _require_int("duration_ms", self.duration_ms, 0, MAX_DURATION_MS)
        object.__setattr__(self, "angles", validate_angles(self.angles))

    def encode(self) -> str:
        return f"MOVE {self.duration_ms} {_join_angles(self.angles)}\n"


@dataclass(frozen=True)
class GetAngleCommand:
    """Query the current angle of one servo."""
    channel: int

    def __post_init__(self):
        validate_channel(self.channel)

    def encode(self) -> str:
        return f"GET {channel_to_hex(self.channel)}\n"


def _join_angles(angles: Sequence[int]) -> str:
    return ",".join(str(angle) for angle in angles)


def expect_ok(response: str, command: str, action: str) -> None:
    """Check a write-style command was acknowledged.

    Args:
        response: Raw response line
        command: Wire command that was sent
        action: Short description used in the error message

    Raises:
        ProtocolError: Trimmed response is not exactly ``OK``
    """
    if response.strip() != OK_RESPONSE:
        raise ProtocolError(f"Failed to {action}: {response.strip()!r}",
                            command.strip(), response)


def parse_angle(response: str, command: str) -> int:
    """Extract the angle from a ``GET`` reply.

    The reply is split on whitespace; the third token must be an unsigned
    8-bit integer (``SERVO 3: 90 degrees`` -> 90).

    Raises:
        ParseError: Fewer than three tokens, or third token not 0-255
    """
    parts = response.split()
    if len(parts) >= 3:
        token = parts[2]
        if token.isascii() and token.isdigit() and int(token) <= 255:
            return int(token)
    raise ParseError(f"Failed to parse servo angle from response: {response.strip()!r}",
                     command.strip(), response)
