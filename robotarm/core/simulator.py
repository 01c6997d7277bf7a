"""In-memory stand-in for the servo controller firmware.

``SimulatedArm`` implements the Transport interface and answers commands the
way the firmware does, so the whole stack can run without hardware
(``--simulate``) and integration tests can exercise real exchanges.
"""

from typing import Dict, List, Optional, Tuple
import threading

from robotarm.core.exceptions import FlushError, OpenError, ReadError, WriteError
from robotarm.core.protocol import MAX_ANGLE, MAX_PULSE_US, NUM_SERVOS
from robotarm.core.transport import Transport

CMD_BUFFER_SIZE = 32
SERVO_MIN_PULSE = 500
SERVO_MAX_PULSE = 2500
CENTER_ANGLE = 90
CENTER_PULSE = 1500

BUTTON_MODE_HINT = "Type START to enter serial mode\n"


def _parse_hex_digit(char: str) -> Optional[int]:
    if char.isdigit() and char.isascii():
        return int(char)
    if char and char.upper() in "ABCDEF":
        return ord(char.upper()) - ord('A') + 10
    return None


def _parse_uint(text: str) -> Tuple[Optional[int], str]:
    """Parse leading decimal digits; return (value, rest) or (None, text)."""
    digits = 0
    while digits < len(text) and text[digits] in "0123456789":
        digits += 1
    if digits == 0:
        return None, text
    return int(text[:digits]), text[digits:]


def _parse_angle_list(text: str) -> List[int]:
    """Parse ``a,b,c``; an empty list means a parse error."""
    angles: List[int] = []
    rest = text
    while rest and len(angles) < NUM_SERVOS:
        rest = rest.lstrip(" \t")
        if not rest:
            break
        angle, rest = _parse_uint(rest)
        if angle is None or angle > MAX_ANGLE:
            return []
        angles.append(angle)
        rest = rest.lstrip(" \t")
        if rest.startswith(","):
            rest = rest[1:]
        elif rest:
            return []
    return angles


class SimulatedArm(Transport):
    """Simulated robot arm behind a fake serial port.

    Servos start centered at 90 degrees. Write-style commands answer ``OK``
    or ``ERROR: <reason>``; ``GET n`` answers ``SERVO n: <angle> degrees``.
    Channel commands are only accepted after ``START``.

    Attributes:
        angles: Current servo angles
        pulse_widths: Current servo pulse widths in microseconds
        serial_mode: True between START and STOP
        received: Every command line received, in order
        faults: One-shot errors keyed by operation name
            ("clear_input", "write", "flush", "read_byte")
        refuse_open: When True, open() fails as if the device were unplugged
    """

    def __init__(self, port: str = "sim://robot-arm"):
        self.port = port
        self.angles = [CENTER_ANGLE] * NUM_SERVOS
        self.pulse_widths = [CENTER_PULSE] * NUM_SERVOS
        self.serial_mode = False
        self.received: List[str] = []
        self.faults: Dict[str, Exception] = {}
        self.refuse_open = False
        self._open = False
        self._rx = bytearray()
        self._tx = bytearray()
        self._lock = threading.Lock()

    def open(self) -> None:
        if self.refuse_open:
            raise OpenError(f"Failed to open serial port {self.port}", self.port)
        with self._lock:
            self._open = True
            self._rx.clear()
            self._tx.clear()

    def close(self) -> None:
        with self._lock:
            self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def clear_input(self) -> None:
        self._check("clear_input", FlushError, "Cannot clear input buffer of closed port")
        with self._lock:
            self._tx.clear()

    def write(self, data: bytes) -> None:
        self._check("write", WriteError, "Cannot write to closed port")
        with self._lock:
            self._rx += data
            self._process_lines()

    def flush(self) -> None:
        self._check("flush", WriteError, "Cannot flush closed port")

    def read_byte(self) -> bytes:
        self._check("read_byte", ReadError, "Cannot read from closed port")
        with self._lock:
            if not self._tx:
                return b""
            byte = bytes(self._tx[:1])
            del self._tx[:1]
            return byte

    def _check(self, operation: str, error_class, message: str) -> None:
        error = self.faults.pop(operation, None)
        if error is not None:
            raise error
        if not self._open:
            raise error_class(message, self.port)

    def _process_lines(self) -> None:
        # Caller holds self._lock
        while True:
            positions = [i for i in (self._rx.find(b"\n"), self._rx.find(b"\r")) if i >= 0]
            if not positions:
                return
            end = min(positions)
            raw = self._rx[:end]
            del self._rx[:end + 1]
            line = "".join(chr(b) for b in raw if 32 <= b <= 126)[:CMD_BUFFER_SIZE - 1]
            if not line:
                continue
            self.received.append(line)
            self._tx += self._respond(line).encode("ascii")

    def _respond(self, line: str) -> str:
        if not self.serial_mode:
            if line in ("START", "start"):
                self.serial_mode = True
                return "OK\n"
            return BUTTON_MODE_HINT

        if line in ("STOP", "stop"):
            self.serial_mode = False
            return "OK\n"
        if line[:4] in ("GET ", "get "):
            return self._get(line)
        if line[:5] in ("POSE ", "pose "):
            angles = _parse_angle_list(line[5:])
            if not angles:
                return "ERROR: Invalid POSE format\n"
            self._apply_pose(angles)
            return "OK\n"
        if line[:5] in ("MOVE ", "move "):
            return self._move(line[5:])
        if line[0] in "Ss":
            return self._set(line, MAX_ANGLE, "Invalid angle (must be 0-180)", self._set_angle)
        if line[0] in "Pp":
            return self._set(line, MAX_PULSE_US, "Invalid pulse width (must be 0-20000us)",
                             self._set_pulse)
        return "ERROR: Unknown command (type HELP for list)\n"

    def _get(self, line: str) -> str:
        channel = _parse_hex_digit(line[4]) if len(line) >= 5 else None
        if channel is None or channel >= NUM_SERVOS:
            return "ERROR: Invalid GET command\n"
        return f"SERVO {channel:X}: {self.angles[channel]} degrees\n"

    def _move(self, text: str) -> str:
        duration, rest = _parse_uint(text.lstrip(" \t"))
        angles = _parse_angle_list(rest.lstrip(" \t")) if duration is not None else []
        if not angles:
            return "ERROR: Invalid MOVE format\n"
        # Interpolation happens on the hardware; only the end state is observable
        self._apply_pose(angles)
        return "OK\n"

    def _set(self, line: str, limit: int, range_error: str, apply) -> str:
        if len(line) < 4:
            return "ERROR: Invalid command format\n"
        channel = _parse_hex_digit(line[1])
        if channel is None or channel >= NUM_SERVOS:
            return f"ERROR: Invalid servo (must be 0-{NUM_SERVOS - 1:X} hex)\n"
        _, colon, rest = line.partition(":")
        if not colon:
            return "ERROR: Invalid command format\n"
        value, _ = _parse_uint(rest)
        if value is None or value > limit:
            return f"ERROR: {range_error}\n"
        apply(channel, value)
        return "OK\n"

    def _set_angle(self, channel: int, angle: int) -> None:
        self.angles[channel] = angle
        self.pulse_widths[channel] = (
            SERVO_MIN_PULSE + angle * (SERVO_MAX_PULSE - SERVO_MIN_PULSE) // MAX_ANGLE
        )

    def _set_pulse(self, channel: int, pulse_us: int) -> None:
        # Raw PWM does not change the reported angle
        self.pulse_widths[channel] = pulse_us

    def _apply_pose(self, angles: List[int]) -> None:
        for channel, angle in enumerate(angles):
            self._set_angle(channel, angle)

    def __repr__(self) -> str:
        mode = "serial" if self.serial_mode else "button"
        return f"SimulatedArm(port='{self.port}', mode={mode}, angles={self.angles})"
