"""Configuration data models for the robot arm backend.

Immutable dataclasses with defaults that let the backend run with no
configuration file at all.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, Any


class LogLevel(Enum):
    """Logging level."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass(frozen=True)
class SerialConfig:
    """Serial link configuration.

    Delays are in seconds. The settle delays match what the firmware needs
    and should only be changed together with it.
    """
    port: str = "/dev/ttyUSB0"
    baud_rate: int = 115200
    timeout: float = 12.0
    open_settle_delay: float = 0.1
    flush_settle_delay: float = 0.5
    command_settle_delay: float = 0.2
    max_response_bytes: int = 256
    simulate: bool = False


@dataclass(frozen=True)
class SupervisorConfig:
    """Connection supervision configuration."""
    reconnect_interval: float = 5.0


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration."""
    bind_addr: str = "0.0.0.0:3000"
    cors_origin: str = "*"

    @property
    def host(self) -> str:
        return self.bind_addr.rsplit(":", 1)[0]

    @property
    def port(self) -> int:
        return int(self.bind_addr.rsplit(":", 1)[1])


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    file_path: Optional[str] = None
    console_output: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass(frozen=True)
class Config:
    """Complete configuration object with all sections."""
    serial: SerialConfig = field(default_factory=SerialConfig)
    supervisor: SupervisorConfig = field(default_factory=SupervisorConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a plain dictionary (enums as values)."""
        def convert_value(obj: Any) -> Any:
            if isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, dict):
                return {k: convert_value(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_value(item) for item in obj]
            return obj

        return convert_value(asdict(self))
