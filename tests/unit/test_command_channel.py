"""Unit tests for CommandChannel with a mocked transport."""

import threading
import time

import pytest
from unittest.mock import Mock, MagicMock, patch

from robotarm.core.command_channel import CommandChannel
from robotarm.core.exceptions import FlushError, ReadError, WriteError
from robotarm.core.transport import Transport


def make_transport(reply: bytes = b"OK\n"):
    """Mock transport that answers ``reply`` one byte at a time, then times out."""
    transport = MagicMock(spec=Transport)
    transport.port = "/dev/ttyUSB0"
    transport.read_byte.side_effect = [bytes([b]) for b in reply] + [b""] * 10
    return transport


class TestCommandChannelExecute:

    def test_exchange_order(self):
        transport = make_transport(b"OK\n")
        channel = CommandChannel(transport, settle_delay=0)

        response = channel.execute("S3:90\n")

        assert response == "OK\n"
        assert [c[0] for c in transport.method_calls[:3]] == ["clear_input", "write", "flush"]
        transport.write.assert_called_once_with(b"S3:90\n")

    @patch('time.sleep')
    def test_settle_delay(self, mock_sleep):
        transport = make_transport(b"OK\n")
        channel = CommandChannel(transport, settle_delay=0.2)

        channel.execute("START\n")

        mock_sleep.assert_called_once_with(0.2)

    def test_stops_at_newline(self):
        transport = make_transport(b"SERVO 0: 90 degrees\nextra")
        channel = CommandChannel(transport, settle_delay=0)

        assert channel.execute("GET 0\n") == "SERVO 0: 90 degrees\n"

    def test_timeout_returns_partial(self):
        transport = make_transport(b"SERV")
        channel = CommandChannel(transport, settle_delay=0)

        assert channel.execute("GET 0\n") == "SERV"

    def test_silent_device_returns_empty(self):
        transport = make_transport(b"")
        channel = CommandChannel(transport, settle_delay=0)

        assert channel.execute("START\n") == ""

    def test_size_cap(self):
        transport = make_transport(b"X" * 50)
        channel = CommandChannel(transport, settle_delay=0, max_response_bytes=16)

        response = channel.execute("GET 0\n")

        assert len(response) == 17
        assert transport.read_byte.call_count == 17

    def test_invalid_utf8_replaced(self):
        transport = make_transport(b"O\xffK\n")
        channel = CommandChannel(transport, settle_delay=0)

        assert channel.execute("START\n") == "O�K\n"

    @pytest.mark.parametrize("method,error_class", [
        ("clear_input", FlushError),
        ("write", WriteError),
        ("flush", WriteError),
        ("read_byte", ReadError),
    ])
    def test_transport_errors_propagate(self, method, error_class):
        transport = make_transport(b"OK\n")
        getattr(transport, method).side_effect = error_class("failed", "/dev/ttyUSB0")
        channel = CommandChannel(transport, settle_delay=0)

        with pytest.raises(error_class):
            channel.execute("S0:90\n")

    def test_write_failure_skips_read(self):
        transport = make_transport(b"OK\n")
        transport.write.side_effect = WriteError("failed", "/dev/ttyUSB0")
        channel = CommandChannel(transport, settle_delay=0)

        with pytest.raises(WriteError):
            channel.execute("S0:90\n")

        transport.read_byte.assert_not_called()


class TestCommandChannelLogging:

    def test_logs_command_and_response(self):
        transport = make_transport(b"OK\n")
        comm_logger = Mock()
        channel = CommandChannel(transport, settle_delay=0, comm_logger=comm_logger)

        channel.execute("S0:90\n")

        comm_logger.log_command.assert_called_once_with(port="/dev/ttyUSB0", command="S0:90")
        kwargs = comm_logger.log_response.call_args.kwargs
        assert kwargs["response"] == "OK"
        assert kwargs["command"] == "S0:90"
        assert kwargs["execution_time"] >= 0

    def test_logs_error(self):
        transport = make_transport(b"OK\n")
        transport.flush.side_effect = WriteError("failed", "/dev/ttyUSB0")
        comm_logger = Mock()
        channel = CommandChannel(transport, settle_delay=0, comm_logger=comm_logger)

        with pytest.raises(WriteError):
            channel.execute("S0:90\n")

        comm_logger.log_error.assert_called_once()
        comm_logger.log_response.assert_not_called()


class TestCommandChannelConcurrency:

    def test_exchanges_never_interleave(self):
        """Each write is followed by its own read before the next write."""
        events = []
        events_lock = threading.Lock()

        class RecordingTransport(Transport):
            port = "/dev/ttyUSB0"
            is_open = True

            def open(self):
                pass

            def close(self):
                pass

            def clear_input(self):
                pass

            def write(self, data):
                with events_lock:
                    events.append(("write", data))
                time.sleep(0.001)

            def flush(self):
                pass

            def read_byte(self):
                with events_lock:
                    events.append(("read", None))
                return b"\n"

        channel = CommandChannel(RecordingTransport(), settle_delay=0.001)
        threads = [
            threading.Thread(target=channel.execute, args=(f"S{i}:90\n",))
            for i in range(6)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        kinds = [kind for kind, _ in events]
        assert kinds == ["write", "read"] * 6
