"""Unit tests for the command-line entry point and app wiring."""

import pytest
from unittest.mock import patch

from robotarm.config import LogLevel, get_default_config
from robotarm.core.simulator import SimulatedArm
from robotarm.core.transport import SerialTransport
from robotarm.server.app import (
    apply_cli_overrides,
    build_supervisor,
    build_transport_factory,
    main,
    parse_args
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("SERIAL_PORT", "SERIAL_BAUD", "BIND_ADDR", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestCliOverrides:

    def test_no_flags_keeps_config(self):
        config = get_default_config()

        assert apply_cli_overrides(config, parse_args([])) == config

    def test_flags(self):
        args = parse_args(["--port", "/dev/ttyACM0", "--baud", "9600",
                           "--bind", "127.0.0.1:8000", "--log-level", "DEBUG", "--simulate"])

        config = apply_cli_overrides(get_default_config(), args)

        assert config.serial.port == "/dev/ttyACM0"
        assert config.serial.baud_rate == 9600
        assert config.serial.simulate is True
        assert config.server.port == 8000
        assert config.logging.level is LogLevel.DEBUG

    def test_non_positive_baud(self):
        with pytest.raises(ValueError):
            apply_cli_overrides(get_default_config(), parse_args(["--baud", "0"]))


class TestWiring:

    def test_serial_factory(self):
        factory = build_transport_factory(get_default_config())
        transport = factory()

        assert isinstance(transport, SerialTransport)
        assert transport.port == "/dev/ttyUSB0"
        assert transport.timeout == 12.0
        assert factory() is not transport

    def test_simulated_factory_reuses_arm(self):
        config = apply_cli_overrides(get_default_config(), parse_args(["--simulate"]))
        factory = build_transport_factory(config)

        assert isinstance(factory(), SimulatedArm)
        assert factory() is factory()

    def test_build_supervisor_settings(self):
        supervisor = build_supervisor(get_default_config())

        assert supervisor.settle_delay == 0.2
        assert supervisor.reconnect_interval == 5.0
        supervisor.stop()


class TestMain:

    def test_serves_and_stops(self):
        with patch("flask.Flask.run") as mock_run, \
                patch("robotarm.server.app.configure_logging", return_value=None):
            assert main(["--simulate", "--bind", "127.0.0.1:3100"]) == 0

        mock_run.assert_called_once_with(host="127.0.0.1", port=3100, threaded=True)

    def test_device_missing_still_serves(self):
        with patch("serial.Serial", side_effect=OSError("No such device")), \
                patch("flask.Flask.run") as mock_run, \
                patch("robotarm.server.app.configure_logging", return_value=None):
            assert main(["--port", "/dev/ttyUSB9"]) == 0

        mock_run.assert_called_once()

    def test_foreign_prefixed_env_still_serves(self, monkeypatch):
        monkeypatch.setenv("ROBOTARM_FRONTEND_URL", "http://localhost:5173")
        with patch("flask.Flask.run") as mock_run, \
                patch("robotarm.server.app.configure_logging", return_value=None):
            assert main(["--simulate"]) == 0

        mock_run.assert_called_once()

    def test_bad_config_exits_2(self, capsys):
        assert main(["--config", "missing.yaml"]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_bad_bind_exits_2(self):
        assert main(["--bind", "nowhere"]) == 2
