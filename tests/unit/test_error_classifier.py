"""Unit tests for link/request fault classification."""

import pytest
import serial

from robotarm.core.error_classifier import FaultKind, classify, is_link_fault
from robotarm.core.exceptions import (
    FlushError,
    NotConnectedError,
    OpenError,
    ParseError,
    ProtocolError,
    ReadError,
    ValidationError,
    WriteError
)


class TestIsLinkFault:

    @pytest.mark.parametrize("error", [
        OpenError("x", "/dev/ttyUSB0"),
        FlushError("x", "/dev/ttyUSB0"),
        WriteError("x", "/dev/ttyUSB0"),
        ReadError("x", "/dev/ttyUSB0"),
        serial.SerialException("device disconnected"),
        OSError(5, "Input/output error"),
    ])
    def test_link_faults(self, error):
        assert is_link_fault(error) is True
        assert classify(error) is FaultKind.LINK

    @pytest.mark.parametrize("error", [
        ValidationError("Invalid servo channel: 6", "channel", 6),
        ProtocolError("Failed", "S0:90", "ERROR: Invalid angle\n"),
        ParseError("Failed", "GET 0", "garbage\n"),
        NotConnectedError(),
        ValueError("unrelated"),
    ])
    def test_request_faults(self, error):
        assert is_link_fault(error) is False
        assert classify(error) is FaultKind.REQUEST
