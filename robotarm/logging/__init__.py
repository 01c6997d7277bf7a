"""Serial communication logging.

Structured records of the commands, responses and port events exchanged
with the robot arm, plus process-wide logging setup.
"""

from robotarm.logging.log_models import LogEntry
from robotarm.logging.file_handler import FileHandler
from robotarm.logging.communication_logger import CommunicationLogger
from robotarm.logging.logging_config import configure_logging

__all__ = ['LogEntry', 'FileHandler', 'CommunicationLogger', 'configure_logging']
