"""Unit tests for configuration loading and validation."""

import logging

import pytest
import yaml

from robotarm.config import (
    ConfigManager,
    ConfigSchema,
    LogLevel,
    get_default_config
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep the config search away from the real working dir and home."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding='utf-8')
    return path


class TestDefaults:

    def test_zero_config(self):
        config = ConfigManager(environ={}).load()

        assert config == get_default_config()
        assert config.serial.port == "/dev/ttyUSB0"
        assert config.serial.baud_rate == 115200
        assert config.server.bind_addr == "0.0.0.0:3000"
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 3000
        assert config.supervisor.reconnect_interval == 5.0

    def test_sources_default(self):
        manager = ConfigManager(environ={})
        manager.load()

        assert manager.get_source("serial.port") == "default"

    def test_config_before_load(self):
        with pytest.raises(RuntimeError):
            ConfigManager(environ={}).config


class TestFileLayer:

    def test_explicit_file(self, tmp_path):
        path = write_yaml(tmp_path / "arm.yaml", {
            "serial": {"port": "/dev/ttyACM0", "baud_rate": 57600},
            "logging": {"level": "DEBUG"}
        })
        manager = ConfigManager(config_path=path, environ={})

        config = manager.load()

        assert config.serial.port == "/dev/ttyACM0"
        assert config.serial.baud_rate == 57600
        assert config.serial.timeout == 12.0
        assert config.logging.level is LogLevel.DEBUG
        assert manager.get_source("serial.port") == "file"
        assert manager.get_source("serial.timeout") == "default"

    def test_working_dir_file_found(self, tmp_path):
        write_yaml(tmp_path / "robotarm.yaml", {"server": {"bind_addr": "127.0.0.1:8080"}})

        config = ConfigManager(environ={}).load()

        assert config.server.port == 8080

    def test_home_file_found(self, tmp_path):
        home_dir = tmp_path / "home" / ".robotarm"
        home_dir.mkdir(parents=True)
        write_yaml(home_dir / "config.yaml", {"supervisor": {"reconnect_interval": 1.5}})

        config = ConfigManager(environ={}).load()

        assert config.supervisor.reconnect_interval == 1.5

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding='utf-8')

        assert ConfigManager(config_path=path, environ={}).load() == get_default_config()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager(config_path=tmp_path / "missing.yaml", environ={}).load()

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("serial: [unclosed", encoding='utf-8')

        with pytest.raises(ValueError, match="Failed to load config"):
            ConfigManager(config_path=path, environ={}).load()

    def test_unknown_key_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "arm.yaml", {"serial": {"parity": "N"}})

        with pytest.raises(ValueError, match="validation failed"):
            ConfigManager(config_path=path, environ={}).load()


class TestEnvironmentLayer:

    def test_short_names(self):
        config = ConfigManager(environ={
            "SERIAL_PORT": "/dev/ttyACM1",
            "SERIAL_BAUD": "9600",
            "BIND_ADDR": "127.0.0.1:5000",
            "LOG_LEVEL": "debug"
        }).load()

        assert config.serial.port == "/dev/ttyACM1"
        assert config.serial.baud_rate == 9600
        assert config.server.bind_addr == "127.0.0.1:5000"
        assert config.logging.level is LogLevel.DEBUG

    def test_prefixed_names(self):
        config = ConfigManager(environ={
            "ROBOTARM_SUPERVISOR_RECONNECT_INTERVAL": "2.5",
            "ROBOTARM_SERIAL_SIMULATE": "true",
            "ROBOTARM_SERIAL_COMMAND_SETTLE_DELAY": "0"
        }).load()

        assert config.supervisor.reconnect_interval == 2.5
        assert config.serial.simulate is True
        assert config.serial.command_settle_delay == 0

    def test_env_overrides_file(self, tmp_path):
        path = write_yaml(tmp_path / "arm.yaml", {"serial": {"port": "/dev/ttyS0"}})
        manager = ConfigManager(config_path=path, environ={"SERIAL_PORT": "/dev/ttyUSB3"})

        config = manager.load()

        assert config.serial.port == "/dev/ttyUSB3"
        assert manager.get_source("serial.port") == "env"

    def test_numeric_port_name_stays_string(self):
        config = ConfigManager(environ={"SERIAL_PORT": "1"}).load()

        assert config.serial.port == "1"

    @pytest.mark.parametrize("baud", ["fast", "0", "-9600"])
    def test_invalid_baud(self, baud):
        with pytest.raises(ValueError):
            ConfigManager(environ={"SERIAL_BAUD": baud}).load()

    def test_unrelated_env_ignored(self):
        config = ConfigManager(environ={"PATH": "/usr/bin", "ROBOTARM": "x"}).load()

        assert config == get_default_config()

    def test_unknown_prefixed_names_ignored(self, caplog):
        manager = ConfigManager(environ={
            "ROBOTARM_FRONTEND_URL": "http://x",
            "ROBOTARM_SERIAL_PARITY": "N",
            "ROBOTARM_SERVER_CORS_ORIGIN": "http://localhost:5173"
        })

        with caplog.at_level(logging.DEBUG, logger="robotarm.config.config_manager"):
            config = manager.load()

        assert config.server.cors_origin == "http://localhost:5173"
        assert config.serial == get_default_config().serial
        assert manager.get_source("frontend.url") is None
        assert "Ignoring unknown config variable ROBOTARM_FRONTEND_URL" in caplog.text
        assert "Ignoring unknown config variable ROBOTARM_SERIAL_PARITY" in caplog.text


class TestConfigSchema:

    def test_defaults_valid(self):
        is_valid, errors = ConfigSchema.validate_config(get_default_config().to_dict())

        assert is_valid is True
        assert errors == []

    def test_bad_bind_addr(self):
        is_valid, errors = ConfigSchema.validate_config({"server": {"bind_addr": "localhost"}})

        assert is_valid is False
        assert errors[0].startswith("server.bind_addr")

    def test_bind_port_out_of_range(self):
        is_valid, errors = ConfigSchema.validate_config({"server": {"bind_addr": "0.0.0.0:70000"}})

        assert is_valid is False
        assert "out of range" in errors[0]

    def test_negative_delay(self):
        is_valid, _ = ConfigSchema.validate_config({"serial": {"flush_settle_delay": -1}})

        assert is_valid is False

    def test_bool_is_not_a_number(self):
        is_valid, _ = ConfigSchema.validate_config({"supervisor": {"reconnect_interval": True}})

        assert is_valid is False
