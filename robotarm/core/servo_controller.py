"""Servo operations exposed to the HTTP layer and other collaborators.

Each operation validates and encodes its command first, then runs one
exchange through the supervisor and decodes the reply. Validation errors
are therefore raised even while the device is disconnected, and never
cause I/O.
"""

from typing import List, Sequence
import logging

from robotarm.core.error_classifier import is_link_fault
from robotarm.core.exceptions import NotConnectedError, RobotArmError
from robotarm.core.models import HealthStatus, ServoPosition
from robotarm.core.protocol import (
    NUM_SERVOS,
    START_COMMAND,
    STOP_COMMAND,
    AngleCommand,
    GetAngleCommand,
    MoveCommand,
    PoseCommand,
    PwmCommand,
    expect_ok,
    parse_angle,
)
from robotarm.core.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class ServoController:
    """Synchronous operation set for the robot arm.

    Every operation is all-or-nothing except ``get_all_angles()``, which
    skips channels that could not be read.

    Example:
        >>> controller = ServoController(supervisor)
        >>> controller.enter_serial_mode()
        >>> controller.set_angle(3, 90)
        >>> controller.get_angle(3)
        90
    """

    def __init__(self, supervisor: ConnectionSupervisor):
        self.supervisor = supervisor

    def enter_serial_mode(self) -> None:
        logger.info("Entering serial mode")
        self._send_expect_ok(START_COMMAND, "enter serial mode")

    def exit_serial_mode(self) -> None:
        logger.info("Exiting serial mode")
        self._send_expect_ok(STOP_COMMAND, "exit serial mode")

    def set_angle(self, channel: int, angle: int) -> None:
        """Set servo angle (0-180 degrees).

        Raises:
            ValidationError: Channel or angle out of range
            ProtocolError: Device did not acknowledge
            NotConnectedError, SerialLinkError: Link unavailable
        """
        command = AngleCommand(channel=channel, angle=angle).encode()
        self._send_expect_ok(command, "set servo angle")

    def set_pwm(self, channel: int, pulse_us: int) -> None:
        """Set servo PWM pulse width (0-20000 microseconds)."""
        command = PwmCommand(channel=channel, pulse_us=pulse_us).encode()
        self._send_expect_ok(command, "set servo PWM")

    def get_angle(self, channel: int) -> int:
        """Query one servo's angle.

        Raises:
            ValidationError: Channel out of range
            ParseError: Reply was not ``SERVO <n>: <angle> ...``
        """
        command = GetAngleCommand(channel=channel).encode()
        response = self.supervisor.execute(command)
        return parse_angle(response, command)

    def get_all_angles(self) -> List[ServoPosition]:
        """Query every channel in order, skipping the ones that fail.

        The whole sweep runs on one borrowed connection. A link fault on one
        channel does not stop the others from being tried; the connection is
        reported to the supervisor once the sweep is over.

        Returns:
            Positions for the channels that answered, in channel order
        """
        try:
            connection = self.supervisor.borrow()
        except NotConnectedError as e:
            logger.error("Failed to get servo angles: %s", e)
            return []

        positions = []
        link_error = None
        for channel in range(NUM_SERVOS):
            command = GetAngleCommand(channel=channel).encode()
            try:
                response = self.supervisor.execute_on(connection, command)
                angle = parse_angle(response, command)
                positions.append(ServoPosition(channel=channel, angle=angle))
            except (RobotArmError, OSError) as e:
                logger.error("Failed to get angle for servo %d: %s", channel, e)
                if link_error is None and is_link_fault(e):
                    link_error = e

        if link_error is not None:
            self.supervisor.fault(link_error, connection)
        return positions

    def pose(self, angles: Sequence[int]) -> None:
        """Set channels 0..len-1 to ``angles`` instantly."""
        command = PoseCommand(angles=angles).encode()
        self._send_expect_ok(command, "execute POSE")

    def move(self, duration_ms: int, angles: Sequence[int]) -> None:
        """Move channels 0..len-1 to ``angles`` over ``duration_ms``."""
        command = MoveCommand(duration_ms=duration_ms, angles=angles).encode()
        self._send_expect_ok(command, "execute MOVE")

    def health_status(self) -> HealthStatus:
        return self.supervisor.health_status()

    def _send_expect_ok(self, command: str, action: str) -> None:
        response = self.supervisor.execute(command)
        expect_ok(response, command, action)
