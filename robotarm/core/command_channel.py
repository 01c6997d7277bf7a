"""Request/response exchange over a transport.

One exchange is: clear stale input, write the command, flush, wait for the
firmware to process it, then read a single response line. The firmware has
no ready signal, so the settle delay is the synchronization mechanism.
"""

from typing import Optional, TYPE_CHECKING
import logging
import threading
import time

from robotarm.core.protocol import MAX_RESPONSE_BYTES
from robotarm.core.transport import Transport

if TYPE_CHECKING:
    from robotarm.logging.communication_logger import CommunicationLogger

logger = logging.getLogger(__name__)


class CommandChannel:
    """Runs strictly serialized command exchanges on one transport.

    The channel lock is held for the whole exchange, settle delay and read
    included, so commands from concurrent callers never interleave on the wire.

    Example:
        >>> channel = CommandChannel(transport)
        >>> channel.execute("GET 0\\n")
        'SERVO 0: 90 degrees\\n'
    """

    def __init__(self,
                 transport: Transport,
                 settle_delay: float = 0.2,
                 max_response_bytes: int = MAX_RESPONSE_BYTES,
                 comm_logger: Optional['CommunicationLogger'] = None):
        """Initialize channel.

        Args:
            transport: Open transport to exchange on
            settle_delay: Seconds to wait between write and read (default 0.2)
            max_response_bytes: Stop reading once the buffer exceeds this size
            comm_logger: Optional CommunicationLogger for command/response records
        """
        self.transport = transport
        self.settle_delay = settle_delay
        self.max_response_bytes = max_response_bytes
        self.comm_logger = comm_logger
        self._lock = threading.Lock()

    def execute(self, command: str) -> str:
        """Send one command and return the raw response line.

        Args:
            command: Encoded command, newline included

        Returns:
            Response text including its newline if one arrived. May be empty
            or partial when the device stayed silent until the read timeout.

        Raises:
            FlushError: Input buffer could not be cleared
            WriteError: Command could not be written or flushed
            ReadError: Reading the response failed
        """
        with self._lock:
            logger.debug("Sending command: %r", command.strip())
            if self.comm_logger:
                self.comm_logger.log_command(port=self.transport.port, command=command.strip())

            start_time = time.time()
            try:
                self.transport.clear_input()
                self.transport.write(command.encode("ascii"))
                self.transport.flush()

                time.sleep(self.settle_delay)

                response = self._read_line()
            except Exception as e:
                if self.comm_logger:
                    self.comm_logger.log_error(
                        source="CommandChannel",
                        error=str(e),
                        details={"port": self.transport.port, "command": command.strip()}
                    )
                raise

            execution_time = time.time() - start_time
            logger.debug("Response to %r: %r (%.3fs)", command.strip(), response, execution_time)
            if self.comm_logger:
                self.comm_logger.log_response(
                    port=self.transport.port,
                    response=response.strip(),
                    execution_time=execution_time,
                    command=command.strip()
                )
            return response

    def _read_line(self) -> str:
        """Read bytes until newline, size cap or timeout.

        Caller must hold self._lock.
        """
        buffer = bytearray()
        while True:
            byte = self.transport.read_byte()
            if not byte:
                # Read timeout ends the response
                break
            buffer += byte
            if byte == b"\n":
                break
            if len(buffer) > self.max_response_bytes:
                logger.warning("Response from %s exceeded %d bytes, truncating",
                               self.transport.port, self.max_response_bytes)
                break
        return buffer.decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"CommandChannel(port={self.transport.port}, settle={self.settle_delay}s)"
