"""Serial transport for the servo controller.

This module owns the open pyserial handle and provides the raw primitives
the command channel is built on: clear input, write, flush and single-byte
reads bounded by a timeout. Opening runs the stabilization sequence the
firmware needs before it accepts commands.
"""

from abc import ABC, abstractmethod
from typing import Optional, TYPE_CHECKING
import time

import serial

from robotarm.core.exceptions import FlushError, OpenError, ReadError, WriteError

# Avoid circular import for type hints
if TYPE_CHECKING:
    from robotarm.logging.communication_logger import CommunicationLogger


class Transport(ABC):
    """Byte-stream interface to one servo controller.

    Implementations raise the link-level errors from
    ``robotarm.core.exceptions`` and return ``b""`` from ``read_byte()``
    when the read timeout expires.
    """

    port: str

    @abstractmethod
    def open(self) -> None:
        """Open the device and bring it to a clean, command-ready state."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Safe to call more than once."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the device handle is open."""

    @abstractmethod
    def clear_input(self) -> None:
        """Discard any bytes waiting in the input buffer."""

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write all of ``data``."""

    @abstractmethod
    def flush(self) -> None:
        """Block until written data has left the output buffer."""

    @abstractmethod
    def read_byte(self) -> bytes:
        """Read one byte, or ``b""`` on timeout."""


class SerialTransport(Transport):
    """pyserial-backed transport.

    Example:
        >>> transport = SerialTransport('/dev/ttyUSB0', baud_rate=115200)
        >>> transport.open()      # ~600 ms: settle, clear, settle, clear
        >>> transport.write(b"START\\n")
        >>> transport.close()
    """

    def __init__(self,
                 port: str,
                 baud_rate: int = 115200,
                 timeout: float = 12.0,
                 open_settle_delay: float = 0.1,
                 flush_settle_delay: float = 0.5,
                 logger: Optional['CommunicationLogger'] = None):
        """Initialize transport with port configuration.

        Args:
            port: Serial port device path
            baud_rate: Baud rate (default 115200)
            timeout: Per-call read/write timeout in seconds (default 12.0)
            open_settle_delay: Wait after opening before the first clear
            flush_settle_delay: Wait between the first and second clear
            logger: Optional CommunicationLogger for port events
        """
        self.port = port
        self.baud_rate = baud_rate
        self.timeout = timeout
        self.open_settle_delay = open_settle_delay
        self.flush_settle_delay = flush_settle_delay
        self.logger = logger
        self._serial: Optional[serial.Serial] = None
        self._open_time: Optional[float] = None

    def open(self) -> None:
        """Open the serial device and discard any startup output.

        Waits for the hardware to stabilize, clears the input buffer, waits
        again and clears it a second time so a startup banner queued by the
        firmware never reaches the first command.

        Raises:
            OpenError: Device doesn't exist, permission denied or busy
            FlushError: Input buffer could not be cleared
        """
        if self.is_open:
            return

        try:
            self._serial = serial.Serial(
                port=self.port,
                baudrate=self.baud_rate,
                timeout=self.timeout,
                write_timeout=self.timeout
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self._serial = None
            if self.logger:
                self.logger.log_error(
                    source="SerialTransport",
                    error=f"Failed to open port: {e}",
                    details={"port": self.port, "error_type": type(e).__name__}
                )
            raise OpenError(f"Failed to open serial port {self.port}", self.port, e) from e

        try:
            time.sleep(self.open_settle_delay)
            self.clear_input()
            time.sleep(self.flush_settle_delay)
            self.clear_input()
        except FlushError:
            self.close()
            raise

        self._open_time = time.time()
        if self.logger:
            self.logger.log_port_event(
                event="Port opened",
                port=self.port,
                details={"baud_rate": self.baud_rate, "timeout": self.timeout},
                level="INFO"
            )

    def close(self) -> None:
        """Close the serial device.

        Close errors are logged, never raised: the handle is discarded either way.
        """
        if self._serial is None:
            return
        try:
            self._serial.close()
        except (serial.SerialException, OSError) as e:
            if self.logger:
                self.logger.log_error(
                    source="SerialTransport",
                    error=f"Error closing port: {e}",
                    details={"port": self.port}
                )
        finally:
            if self.logger and self._open_time is not None:
                self.logger.log_port_event(
                    event="Port closed",
                    port=self.port,
                    details={"session_duration_seconds": time.time() - self._open_time},
                    level="INFO"
                )
            self._serial = None
            self._open_time = None

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def clear_input(self) -> None:
        """Discard pending input.

        Raises:
            FlushError: Port not open or buffer reset failed
        """
        if not self.is_open:
            raise FlushError("Cannot clear input buffer of closed port", self.port)
        try:
            self._serial.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            raise FlushError(f"Failed to clear input buffer on {self.port}", self.port, e) from e

    def write(self, data: bytes) -> None:
        """Write bytes to the device.

        Raises:
            WriteError: Port not open, short write, or write failed
        """
        if not self.is_open:
            raise WriteError("Cannot write to closed port", self.port)
        try:
            written = self._serial.write(data)
        except (serial.SerialException, OSError) as e:
            raise WriteError(f"Failed to write to serial port {self.port}", self.port, e) from e
        if isinstance(written, int) and written != len(data):
            raise WriteError(
                f"Short write to serial port {self.port}: {written} of {len(data)} bytes",
                self.port
            )

    def flush(self) -> None:
        """Wait for output to drain.

        Raises:
            WriteError: Port not open or flush failed
        """
        if not self.is_open:
            raise WriteError("Cannot flush closed port", self.port)
        try:
            self._serial.flush()
        except (serial.SerialException, OSError) as e:
            raise WriteError(f"Failed to flush serial port {self.port}", self.port, e) from e

    def read_byte(self) -> bytes:
        """Read a single byte.

        pyserial reports an expired read timeout by returning short data,
        not by raising.

        Returns:
            One byte, or ``b""`` when the read timeout expired

        Raises:
            ReadError: Port not open or read failed
        """
        if not self.is_open:
            raise ReadError("Cannot read from closed port", self.port)
        try:
            return self._serial.read(1)
        except (serial.SerialException, OSError) as e:
            raise ReadError(f"Failed to read from serial port {self.port}", self.port, e) from e

    def __repr__(self) -> str:
        status = "open" if self.is_open else "closed"
        return f"SerialTransport(port='{self.port}', baud={self.baud_rate}, status={status})"
