"""Default configuration values for zero-config operation."""

from robotarm.config.config_models import (
    Config,
    SerialConfig,
    SupervisorConfig,
    ServerConfig,
    LoggingConfig,
    LogLevel
)


def get_default_config() -> Config:
    """Get default configuration.

    Default Values:
        - Serial: /dev/ttyUSB0 at 115200 baud, 12 s I/O timeout, firmware
          settle delays of 100 ms / 500 ms on open and 200 ms per command
        - Supervisor: reconnect attempt every 5 s while disconnected
        - Server: listen on 0.0.0.0:3000, CORS open to any origin
        - Logging: INFO to the console, no log file
    """
    return Config(
        serial=SerialConfig(
            port="/dev/ttyUSB0",
            baud_rate=115200,
            timeout=12.0,
            open_settle_delay=0.1,
            flush_settle_delay=0.5,
            command_settle_delay=0.2,
            max_response_bytes=256,
            simulate=False
        ),
        supervisor=SupervisorConfig(
            reconnect_interval=5.0
        ),
        server=ServerConfig(
            bind_addr="0.0.0.0:3000",
            cors_origin="*"
        ),
        logging=LoggingConfig(
            level=LogLevel.INFO,
            file_path=None,
            console_output=True,
            max_file_size_mb=10,
            backup_count=5
        )
    )
