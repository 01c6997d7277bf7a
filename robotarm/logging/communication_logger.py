"""Communication logger for serial traffic.

CommunicationLogger records every command sent to the arm, every response,
port open/close events and link errors. Entries go to an in-memory ring
buffer and, when enabled, to stderr and a rotating log file.
"""

from collections import deque
from datetime import datetime
from threading import Lock
from typing import Any, Deque, Dict, List, Optional, Union
import logging
import sys

from robotarm.config.config_models import LogLevel
from robotarm.logging.file_handler import FileHandler
from robotarm.logging.log_models import LogEntry


def _severity(level: str) -> int:
    # Unknown level names sort with DEBUG
    value = logging.getLevelName(level)
    return value if isinstance(value, int) else logging.DEBUG


class CommunicationLogger:
    """Central sink for serial communication records.

    Attributes:
        log_level: Minimum level recorded (DEBUG, INFO, WARNING, ERROR)
        enable_console: Whether entries are echoed to stderr
        log_file_path: Path of the log file, if file logging is enabled

    Example:
        >>> comm_logger = CommunicationLogger(log_level=LogLevel.DEBUG, enable_console=True)
        >>> comm_logger.log_command(port="/dev/ttyUSB0", command="GET 0")
        >>> comm_logger.log_response(port="/dev/ttyUSB0", response="SERVO 0: 90 degrees",
        ...                          execution_time=0.214, command="GET 0")
        >>> comm_logger.close()
    """

    def __init__(
        self,
        log_level: Union[LogLevel, str] = LogLevel.INFO,
        enable_console: bool = False,
        log_file_path: Optional[str] = None,
        max_file_size_mb: int = 10,
        backup_count: int = 5,
        buffer_size: int = 1000
    ):
        """Initialize logger destinations.

        Args:
            log_level: Minimum level recorded (default INFO)
            enable_console: Echo entries to stderr (default False)
            log_file_path: Enable file logging to this path (default None)
            max_file_size_mb: File size before rotation (default 10)
            backup_count: Rotated files kept (default 5)
            buffer_size: Entries kept in memory (default 1000)
        """
        self.log_level = log_level.value if isinstance(log_level, LogLevel) else log_level
        self.enable_console = enable_console
        self.log_file_path = log_file_path

        self._lock = Lock()
        self._buffer: Deque[LogEntry] = deque(maxlen=buffer_size)

        self._file_handler: Optional[FileHandler] = None
        if log_file_path:
            try:
                self._file_handler = FileHandler(
                    log_file_path=log_file_path,
                    max_size_mb=max_file_size_mb,
                    backup_count=backup_count
                )
            except OSError as e:
                print(f"WARNING: Failed to initialize file logging: {e}", file=sys.stderr)

    def log(self, entry: LogEntry) -> None:
        """Record an entry if its level passes the filter."""
        if _severity(entry.level) < _severity(self.log_level):
            return

        with self._lock:
            self._buffer.append(entry)
            if self._file_handler:
                self._file_handler.write(entry)
            if self.enable_console:
                print(entry.to_string(), file=sys.stderr)

    def log_command(self, port: str, command: str) -> None:
        """Record a command about to be written."""
        self.log(LogEntry(
            timestamp=datetime.now(),
            level="DEBUG",
            source="CommandChannel",
            message="Sending command",
            port=port,
            command=command
        ))

    def log_response(
        self,
        port: str,
        response: str,
        execution_time: float,
        command: Optional[str] = None
    ) -> None:
        """Record a response line.

        An empty response (device silent until timeout) is logged as WARNING.
        """
        self.log(LogEntry(
            timestamp=datetime.now(),
            level="INFO" if response else "WARNING",
            source="CommandChannel",
            message="Received response" if response else "No response before timeout",
            port=port,
            command=command,
            response=response,
            execution_time=execution_time
        ))

    def log_port_event(
        self,
        event: str,
        port: str,
        details: Optional[Dict[str, Any]] = None,
        level: str = "INFO"
    ) -> None:
        """Record a port event such as "Port opened" or "Port closed"."""
        self.log(LogEntry(
            timestamp=datetime.now(),
            level=level,
            source="SerialTransport",
            message=event,
            port=port,
            details=details
        ))

    def log_error(
        self,
        source: str,
        error: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self.log(LogEntry(
            timestamp=datetime.now(),
            level="ERROR",
            source=source,
            message="Error occurred",
            error=error,
            details=details
        ))

    def set_level(self, level: Union[LogLevel, str]) -> None:
        self.log_level = level.value if isinstance(level, LogLevel) else level

    def get_entries(self, limit: Optional[int] = None) -> List[LogEntry]:
        """Return buffered entries, oldest first, optionally only the last ``limit``."""
        with self._lock:
            entries = list(self._buffer)
        if limit:
            entries = entries[-limit:]
        return entries

    def clear_buffer(self) -> None:
        """Clear the in-memory buffer; the log file is untouched."""
        with self._lock:
            self._buffer.clear()

    def flush(self) -> None:
        if self._file_handler:
            self._file_handler.flush()

    def close(self) -> None:
        if self._file_handler:
            self._file_handler.close()
            self._file_handler = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
