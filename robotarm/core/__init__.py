"""Core serial control components.

This package provides the command protocol, the serial transport and the
connection supervision used to drive the robot arm.
"""

from robotarm.core.exceptions import (
    RobotArmError,
    SerialLinkError,
    OpenError,
    FlushError,
    WriteError,
    ReadError,
    NotConnectedError,
    ValidationError,
    ProtocolError,
    ParseError
)
from robotarm.core.models import SlotState, HealthStatus, ServoPosition
from robotarm.core.protocol import (
    NUM_SERVOS,
    AngleCommand,
    PwmCommand,
    PoseCommand,
    MoveCommand,
    GetAngleCommand
)
from robotarm.core.transport import Transport, SerialTransport
from robotarm.core.command_channel import CommandChannel
from robotarm.core.error_classifier import FaultKind, classify, is_link_fault
from robotarm.core.supervisor import Connection, ConnectionSupervisor
from robotarm.core.servo_controller import ServoController
from robotarm.core.simulator import SimulatedArm

__all__ = [
    'RobotArmError',
    'SerialLinkError',
    'OpenError',
    'FlushError',
    'WriteError',
    'ReadError',
    'NotConnectedError',
    'ValidationError',
    'ProtocolError',
    'ParseError',
    'SlotState',
    'HealthStatus',
    'ServoPosition',
    'NUM_SERVOS',
    'AngleCommand',
    'PwmCommand',
    'PoseCommand',
    'MoveCommand',
    'GetAngleCommand',
    'Transport',
    'SerialTransport',
    'CommandChannel',
    'FaultKind',
    'classify',
    'is_link_fault',
    'Connection',
    'ConnectionSupervisor',
    'ServoController',
    'SimulatedArm',
]
