"""Configuration management package.

Provides configuration loading with defaults, YAML file loading,
environment variable overrides and schema validation.
"""

from robotarm.config.config_manager import ConfigManager
from robotarm.config.config_models import (
    Config,
    SerialConfig,
    SupervisorConfig,
    ServerConfig,
    LoggingConfig,
    LogLevel
)
from robotarm.config.config_schema import ConfigSchema
from robotarm.config.defaults import get_default_config

__all__ = [
    'ConfigManager',
    'ConfigSchema',
    'Config',
    'SerialConfig',
    'SupervisorConfig',
    'ServerConfig',
    'LoggingConfig',
    'LogLevel',
    'get_default_config',
]
