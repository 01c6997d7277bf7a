"""Log data models for serial communication logging.

Defines the immutable record written for every command, response, port
event and error on the serial link.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Any, Optional
import json


@dataclass(frozen=True)
class LogEntry:
    """Immutable communication log record.

    Attributes:
        timestamp: When the event occurred
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        source: Component name (SerialTransport, CommandChannel, ...)
        message: Short event description
        details: Additional structured data
        port: Serial port the event belongs to
        command: Wire command, without newline
        response: Response line, stripped
        execution_time: Exchange duration in seconds
        error: Error text for failures
    """
    timestamp: datetime
    level: str
    source: str
    message: str
    details: Optional[Dict[str, Any]] = None
    port: Optional[str] = None
    command: Optional[str] = None
    response: Optional[str] = None
    execution_time: Optional[float] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary with an ISO 8601 timestamp."""
        return {
            'timestamp': self.timestamp.isoformat(),
            'level': self.level,
            'source': self.source,
            'message': self.message,
            'details': self.details,
            'port': self.port,
            'command': self.command,
            'response': self.response,
            'execution_time': self.execution_time,
            'error': self.error
        }

    def to_string(self) -> str:
        """Format as one human-readable line.

        Example:
            >>> entry.to_string()
            '2025-01-12 10:30:15.234 | INFO    | CommandChannel  | Received response | CMD: GET 0 | RESP: SERVO 0: 90 degrees | TIME: 0.214s'
        """
        timestamp_str = self.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        line = f"{timestamp_str} | {self.level:7} | {self.source:15} | {self.message}"

        if self.port:
            line += f" | PORT: {self.port}"
        if self.command:
            line += f" | CMD: {self.command}"
        if self.response is not None:
            line += f" | RESP: {self.response}"
        if self.execution_time is not None:
            line += f" | TIME: {self.execution_time:.3f}s"
        if self.error:
            line += f" | ERROR: {self.error}"

        return line

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LogEntry':
        """Create a LogEntry from ``to_dict()`` output."""
        timestamp = data['timestamp']
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            timestamp=timestamp,
            level=data['level'],
            source=data['source'],
            message=data['message'],
            details=data.get('details'),
            port=data.get('port'),
            command=data.get('command'),
            response=data.get('response'),
            execution_time=data.get('execution_time'),
            error=data.get('error')
        )

    @classmethod
    def from_json(cls, json_str: str) -> 'LogEntry':
        return cls.from_dict(json.loads(json_str))
