"""Unit tests for LogEntry dataclass."""

import pytest
from datetime import datetime
import json

from robotarm.logging.log_models import LogEntry


class TestLogEntry:
    """Test suite for LogEntry dataclass."""

    def test_log_entry_creation(self):
        timestamp = datetime.now()
        entry = LogEntry(
            timestamp=timestamp,
            level="INFO",
            source="CommandChannel",
            message="Received response"
        )

        assert entry.timestamp == timestamp
        assert entry.level == "INFO"
        assert entry.details is None
        assert entry.port is None
        assert entry.execution_time is None

    def test_log_entry_immutable(self):
        entry = LogEntry(
            timestamp=datetime.now(),
            level="INFO",
            source="Test",
            message="Test"
        )

        with pytest.raises(Exception):  # FrozenInstanceError
            entry.level = "DEBUG"

    def test_to_dict(self):
        entry = LogEntry(
            timestamp=datetime(2025, 1, 12, 10, 30, 15),
            level="INFO",
            source="CommandChannel",
            message="Received response",
            port="/dev/ttyUSB0",
            command="GET 0",
            response="SERVO 0: 90 degrees"
        )

        result = entry.to_dict()

        assert result["timestamp"] == "2025-01-12T10:30:15"
        assert result["port"] == "/dev/ttyUSB0"
        assert result["command"] == "GET 0"
        assert result["response"] == "SERVO 0: 90 degrees"

    def test_to_string(self):
        entry = LogEntry(
            timestamp=datetime(2025, 1, 12, 10, 30, 15, 123000),
            level="INFO",
            source="CommandChannel",
            message="Received response",
            port="/dev/ttyUSB0",
            command="GET 0",
            response="SERVO 0: 90 degrees",
            execution_time=0.214
        )

        result = entry.to_string()

        assert result.startswith("2025-01-12 10:30:15.123 | INFO    | CommandChannel  |")
        assert "PORT: /dev/ttyUSB0" in result
        assert "CMD: GET 0" in result
        assert "RESP: SERVO 0: 90 degrees" in result
        assert "TIME: 0.214s" in result

    def test_to_string_empty_response_shown(self):
        entry = LogEntry(
            timestamp=datetime.now(),
            level="WARNING",
            source="CommandChannel",
            message="No response before timeout",
            response=""
        )

        assert "RESP: " in entry.to_string()

    def test_to_string_error(self):
        entry = LogEntry(
            timestamp=datetime.now(),
            level="ERROR",
            source="SerialTransport",
            message="Error occurred",
            error="Failed to open port"
        )

        assert "ERROR: Failed to open port" in entry.to_string()

    def test_json_round_trip(self):
        entry = LogEntry(
            timestamp=datetime(2025, 1, 12, 10, 30, 15, 123000),
            level="DEBUG",
            source="CommandChannel",
            message="Sending command",
            details={"attempt": 1},
            port="/dev/ttyUSB0",
            command="S3:90"
        )

        data = json.loads(entry.to_json())
        restored = LogEntry.from_json(entry.to_json())

        assert data["details"] == {"attempt": 1}
        assert restored == entry
