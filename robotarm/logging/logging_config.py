"""Process-wide logging setup."""

from typing import Optional
import logging
import sys

from robotarm.config.config_models import LoggingConfig
from robotarm.logging.communication_logger import CommunicationLogger

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: LoggingConfig) -> Optional[CommunicationLogger]:
    """Configure the root logger and build the communication logger.

    The root logger writes to stderr at ``config.level``. A
    CommunicationLogger is returned when serial traffic should be recorded,
    i.e. when a log file is configured or console output is enabled.

    Args:
        config: Logging section of the application config

    Returns:
        CommunicationLogger, or None when traffic logging is off
    """
    level = getattr(logging, config.level.value)
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "_robotarm", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._robotarm = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    if not config.file_path and not config.console_output:
        return None

    return CommunicationLogger(
        log_level=config.level,
        enable_console=config.console_output and level <= logging.DEBUG,
        log_file_path=config.file_path,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count
    )
