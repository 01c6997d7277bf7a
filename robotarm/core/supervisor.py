"""Connection lifecycle supervision.

The supervisor is the single owner of the connection slot. Callers borrow
the live connection through it, report failed exchanges to it, and rely on
its background thread to reopen the link after a fault.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING
import logging
import threading
import time

from robotarm.core.command_channel import CommandChannel
from robotarm.core.error_classifier import is_link_fault
from robotarm.core.exceptions import NotConnectedError, SerialLinkError
from robotarm.core.models import HealthStatus, SlotState
from robotarm.core.protocol import MAX_RESPONSE_BYTES
from robotarm.core.transport import Transport

if TYPE_CHECKING:
    from robotarm.logging.communication_logger import CommunicationLogger

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]


@dataclass
class Connection:
    """An open transport and the channel that runs exchanges on it.

    Attributes:
        transport: Open transport owned by this connection
        channel: CommandChannel bound to the transport
        opened_at: Unix timestamp of the successful open
    """
    transport: Transport
    channel: CommandChannel
    opened_at: float = field(default_factory=time.time)

    @property
    def port(self) -> str:
        return self.transport.port


class ConnectionSupervisor:
    """Owns the connection slot and keeps the serial link alive.

    The slot holds at most one Connection. Borrowing, dropping and filling
    the slot happen under one lock; opening happens outside it so a slow
    open never blocks borrowers, and the slot only becomes READY once the
    open sequence has completed. All transport I/O runs on a dedicated
    single-thread executor.

    Example:
        >>> supervisor = ConnectionSupervisor(lambda: SerialTransport('/dev/ttyUSB0'))
        >>> supervisor.connect()
        True
        >>> supervisor.start()               # reconnect every 5 s while empty
        >>> supervisor.execute("GET 0\\n")
        'SERVO 0: 90 degrees\\n'
        >>> supervisor.stop()
    """

    def __init__(self,
                 transport_factory: TransportFactory,
                 settle_delay: float = 0.2,
                 max_response_bytes: int = MAX_RESPONSE_BYTES,
                 reconnect_interval: float = 5.0,
                 comm_logger: Optional['CommunicationLogger'] = None):
        """Initialize supervisor with an empty slot.

        Args:
            transport_factory: Builds a new, unopened Transport per attempt
            settle_delay: Command settle delay for each connection's channel
            max_response_bytes: Response size cap for each connection's channel
            reconnect_interval: Seconds between reconnect attempts (default 5.0)
            comm_logger: Optional CommunicationLogger shared with the channels
        """
        self.transport_factory = transport_factory
        self.settle_delay = settle_delay
        self.max_response_bytes = max_response_bytes
        self.reconnect_interval = reconnect_interval
        self.comm_logger = comm_logger

        self._slot: Optional[Connection] = None
        self._state = SlotState.EMPTY
        self._slot_lock = threading.Lock()
        self._open_lock = threading.Lock()

        self._io_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="serial-io")
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> SlotState:
        with self._slot_lock:
            return self._state

    def health_status(self) -> HealthStatus:
        if self.state is SlotState.READY:
            return HealthStatus.CONNECTED
        return HealthStatus.NOT_CONNECTED

    def borrow(self) -> Connection:
        """Return the live connection without waiting.

        Raises:
            NotConnectedError: Slot is empty or still opening
        """
        with self._slot_lock:
            if self._slot is None:
                raise NotConnectedError()
            return self._slot

    def execute(self, command: str) -> str:
        """Run one exchange on the live connection.

        The exchange runs on the I/O executor; this call blocks until it
        finishes. A failure is reported to ``fault()`` and then re-raised.

        Raises:
            NotConnectedError: No live connection
            SerialLinkError: Link failed; the connection has been dropped
        """
        connection = self.borrow()
        try:
            return self.execute_on(connection, command)
        except Exception as e:
            self.fault(e, connection)
            raise

    def execute_on(self, connection: Connection, command: str) -> str:
        """Run one exchange on a borrowed connection without reporting failures.

        Callers that batch several exchanges use this and call ``fault()``
        themselves once the batch is over.
        """
        return self._io_executor.submit(connection.channel.execute, command).result()

    def fault(self, error: BaseException, connection: Optional[Connection] = None) -> bool:
        """Handle a failed exchange.

        Link-level faults empty the slot; request-level errors leave it alone.

        Args:
            error: The exception the exchange raised
            connection: Connection the exchange ran on. The slot is only
                emptied if it still holds this connection.

        Returns:
            True if the connection was dropped
        """
        if not is_link_fault(error):
            return False
        logger.error("Serial link fault, dropping connection: %s", error)
        return self.drop(connection)

    def drop(self, connection: Optional[Connection] = None) -> bool:
        """Empty the slot and close its transport.

        Args:
            connection: Only drop if the slot holds this connection
                (default: drop whatever is there)

        Returns:
            True if a connection was removed
        """
        with self._slot_lock:
            current = self._slot
            if current is None or (connection is not None and current is not connection):
                return False
            self._slot = None
            self._state = SlotState.EMPTY

        self._run_io(current.transport.close)
        logger.info("Connection to %s dropped", current.port)
        return True

    def connect(self) -> bool:
        """Make one attempt to fill an empty slot.

        Returns:
            True if the slot holds a live connection afterwards
        """
        with self._open_lock:
            with self._slot_lock:
                if self._slot is not None:
                    return True
                if self._stop_event.is_set():
                    return False
                self._state = SlotState.OPENING

            try:
                transport = self.transport_factory()
                self._run_io(transport.open)
            except SerialLinkError as e:
                with self._slot_lock:
                    self._state = SlotState.EMPTY
                logger.warning("Failed to connect: %s", e)
                return False
            except Exception:
                with self._slot_lock:
                    self._state = SlotState.EMPTY
                raise

            connection = Connection(
                transport=transport,
                channel=CommandChannel(
                    transport,
                    settle_delay=self.settle_delay,
                    max_response_bytes=self.max_response_bytes,
                    comm_logger=self.comm_logger
                )
            )
            with self._slot_lock:
                self._slot = connection
                self._state = SlotState.READY

        logger.info("Connected to %s", transport.port)
        return True

    def start(self) -> None:
        """Start the background reconnect thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._reconnect_loop,
            name="serial-reconnect",
            daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop reconnecting, drop the connection and release the I/O worker."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self.drop()
        self._io_executor.shutdown(wait=True)

    def _reconnect_loop(self) -> None:
        # wait() first: the immediate tick is skipped
        while not self._stop_event.wait(self.reconnect_interval):
            try:
                self.reconnect_tick()
            except Exception:
                logger.exception("Unexpected error during reconnect attempt")

    def reconnect_tick(self) -> bool:
        """One reconnect-loop iteration: try to connect only if the slot is empty.

        Returns:
            True if a connection attempt was made
        """
        if self.state is not SlotState.EMPTY:
            return False
        logger.info("Serial link down, attempting to reconnect")
        self.connect()
        return True

    def _run_io(self, fn: Callable[[], None]) -> None:
        try:
            future = self._io_executor.submit(fn)
        except RuntimeError:
            # Executor already shut down
            fn()
            return
        future.result()

    def __enter__(self):
        """Context manager entry: start reconnect loop."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit: stop and release."""
        self.stop()
        return False

    def __repr__(self) -> str:
        return (f"ConnectionSupervisor(state={self.state.value}, "
                f"reconnect_interval={self.reconnect_interval}s)")
