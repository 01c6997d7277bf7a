"""JSON Schema validation for the robot arm backend configuration."""

from typing import Any, Dict, List, Tuple

import jsonschema
from jsonschema import Draft7Validator


class ConfigSchema:
    """Configuration schema validator using JSON Schema Draft 7.

    Example:
        >>> is_valid, errors = ConfigSchema.validate_config({"serial": {"baud_rate": 9600}})
        >>> is_valid
        True
    """

    @staticmethod
    def get_schema() -> Dict[str, Any]:
        """Get JSON Schema Draft 7 for configuration validation."""
        seconds = {"type": "number", "minimum": 0}
        return {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "title": "Robot Arm Backend Configuration",
            "type": "object",
            "properties": {
                "serial": {
                    "type": "object",
                    "description": "Serial link settings",
                    "properties": {
                        "port": {"type": "string", "minLength": 1},
                        "baud_rate": {"type": "integer", "minimum": 1},
                        "timeout": {"type": "number", "exclusiveMinimum": 0},
                        "open_settle_delay": seconds,
                        "flush_settle_delay": seconds,
                        "command_settle_delay": seconds,
                        "max_response_bytes": {"type": "integer", "minimum": 1},
                        "simulate": {"type": "boolean"}
                    },
                    "additionalProperties": False
                },
                "supervisor": {
                    "type": "object",
                    "description": "Connection supervision settings",
                    "properties": {
                        "reconnect_interval": {"type": "number", "exclusiveMinimum": 0}
                    },
                    "additionalProperties": False
                },
                "server": {
                    "type": "object",
                    "description": "HTTP server settings",
                    "properties": {
                        "bind_addr": {"type": "string", "pattern": "^[^\\s]+:[0-9]+$"},
                        "cors_origin": {"type": "string", "minLength": 1}
                    },
                    "additionalProperties": False
                },
                "logging": {
                    "type": "object",
                    "description": "Logging settings",
                    "properties": {
                        "level": {
                            "type": "string",
                            "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]
                        },
                        "file_path": {"type": ["string", "null"]},
                        "console_output": {"type": "boolean"},
                        "max_file_size_mb": {"type": "integer", "minimum": 1},
                        "backup_count": {"type": "integer", "minimum": 0}
                    },
                    "additionalProperties": False
                }
            },
            "additionalProperties": False
        }

    @staticmethod
    def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate a configuration dictionary.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        validator = Draft7Validator(ConfigSchema.get_schema())
        errors = [
            ConfigSchema._format_error(error)
            for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path))
        ]
        errors.extend(ConfigSchema._custom_validation(config))
        return len(errors) == 0, errors

    @staticmethod
    def _format_error(error: jsonschema.exceptions.ValidationError) -> str:
        location = ".".join(str(part) for part in error.path) or "<root>"
        return f"{location}: {error.message}"

    @staticmethod
    def _custom_validation(config: Dict[str, Any]) -> List[str]:
        errors = []
        bind_addr = config.get("server", {}).get("bind_addr")
        if isinstance(bind_addr, str) and ":" in bind_addr:
            port = bind_addr.rsplit(":", 1)[1]
            if port.isdigit() and not 0 < int(port) <= 65535:
                errors.append(f"server.bind_addr: port {port} out of range (1-65535)")
        return errors
