"""Configuration loading for the robot arm backend.

Configuration is layered:
1. Defaults
2. YAML file (if one exists)
3. Environment variable overrides
4. JSON schema validation
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import logging
import os

import yaml

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

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROBOTARM_"

# Short names kept for compatibility with existing deployments
ENV_ALIASES = {
    "SERIAL_PORT": ("serial", "port"),
    "SERIAL_BAUD": ("serial", "baud_rate"),
    "BIND_ADDR": ("server", "bind_addr"),
    "LOG_LEVEL": ("logging", "level"),
}


class ConfigManager:
    """Loads and validates the application configuration.

    Example:
        >>> manager = ConfigManager()
        >>> config = manager.load()
        >>> config.serial.port
        '/dev/ttyUSB0'
        >>> manager.get_source("serial.port")
        'default'
    """

    def __init__(self,
                 config_path: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """Initialize manager.

        Args:
            config_path: Explicit config.yaml path; searched for when None
            environ: Environment mapping (default os.environ)
        """
        self.config_path = Path(config_path) if config_path is not None else None
        self.environ = environ if environ is not None else os.environ
        self._config: Optional[Config] = None
        self._config_source: Dict[str, str] = {}

    @property
    def config(self) -> Config:
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def load(self) -> Config:
        """Load configuration from defaults, file and environment.

        Returns:
            Validated Config

        Raises:
            FileNotFoundError: An explicit config_path does not exist
            ValueError: Config file unreadable or configuration invalid
        """
        self._config_source = {}

        config_dict = get_default_config().to_dict()
        self._mark_source(config_dict, "default")

        config_path = self.config_path
        if config_path is not None and not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        if config_path is None:
            config_path = self._search_config_paths()

        if config_path is not None:
            try:
                file_config = self._load_from_file(config_path)
            except (OSError, yaml.YAMLError) as e:
                raise ValueError(f"Failed to load config from {config_path}: {e}") from e
            config_dict = self._merge_configs(config_dict, file_config)
            self._mark_source(file_config, "file")
            logger.debug("Loaded configuration from %s", config_path)

        env_overrides = self._env_overrides()
        if env_overrides:
            config_dict = self._merge_configs(config_dict, env_overrides)
            self._mark_source(env_overrides, "env")

        is_valid, errors = ConfigSchema.validate_config(config_dict)
        if not is_valid:
            raise ValueError("Configuration validation failed:\n" + "\n".join(
                f"  - {error}" for error in errors
            ))

        self._config = self._dict_to_config(config_dict)
        return self._config

    def get_source(self, key: str) -> Optional[str]:
        """Where a value came from: "default", "file" or "env"."""
        return self._config_source.get(key)

    @staticmethod
    def _search_config_paths() -> Optional[Path]:
        """Search ./robotarm.yaml, then ~/.robotarm/config.yaml."""
        search_paths = [
            Path("./robotarm.yaml"),
            Path.home() / ".robotarm" / "config.yaml"
        ]
        for path in search_paths:
            if path.is_file():
                return path
        return None

    @staticmethod
    def _load_from_file(path: Path) -> Dict[str, Any]:
        with open(path, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f)
        if config_dict is None:
            return {}
        if not isinstance(config_dict, dict):
            raise ValueError(f"Top level of {path} must be a mapping")
        return config_dict

    def _env_overrides(self) -> Dict[str, Any]:
        """Collect overrides from the environment.

        Recognizes the short names in ENV_ALIASES and generic
        ``ROBOTARM_<SECTION>_<KEY>`` variables, e.g.
        ``ROBOTARM_SUPERVISOR_RECONNECT_INTERVAL=2.5``. Prefixed variables
        that name no known config field are ignored.
        """
        overrides: Dict[str, Dict[str, Any]] = {}
        known_fields = get_default_config().to_dict()

        for env_name, (section, key) in ENV_ALIASES.items():
            if env_name in self.environ:
                overrides.setdefault(section, {})[key] = self._parse_env_value(
                    self.environ[env_name], key
                )

        for env_name, env_value in self.environ.items():
            if not env_name.startswith(ENV_PREFIX):
                continue
            parts = env_name[len(ENV_PREFIX):].lower().split('_', 1)
            if len(parts) != 2:
                continue
            section, key = parts
            if key not in known_fields.get(section, {}):
                logger.debug("Ignoring unknown config variable %s", env_name)
                continue
            overrides.setdefault(section, {})[key] = self._parse_env_value(env_value, key)

        return overrides

    @staticmethod
    def _parse_env_value(value: str, key: str) -> Any:
        """Parse an environment string into bool, int, float or str."""
        if key in ("port", "bind_addr", "file_path", "cors_origin"):
            return value
        if key == "level":
            return value.upper()

        if value.lower() in ('true', 'yes', 'on'):
            return True
        if value.lower() in ('false', 'no', 'off'):
            return False
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
        return value

    @staticmethod
    def _merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = deepcopy(base)
        for section, section_values in override.items():
            if isinstance(section_values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(section_values)
            else:
                merged[section] = section_values
        return merged

    def _mark_source(self, config: Dict[str, Any], source: str) -> None:
        for section, section_values in config.items():
            if isinstance(section_values, dict):
                for key in section_values:
                    self._config_source[f"{section}.{key}"] = source

    @staticmethod
    def _dict_to_config(config_dict: Dict[str, Any]) -> Config:
        """Convert a validated dictionary to a Config object."""
        logging_dict = dict(config_dict.get('logging', {}))
        logging_dict['level'] = LogLevel(logging_dict.get('level', LogLevel.INFO.value))

        return Config(
            serial=SerialConfig(**config_dict.get('serial', {})),
            supervisor=SupervisorConfig(**config_dict.get('supervisor', {})),
            server=ServerConfig(**config_dict.get('server', {})),
            logging=LoggingConfig(**logging_dict)
        )
