"""Integration tests for OsSocketProvider against loopback sockets.

These tests open real sockets on 127.0.0.1 and verify the writer's
behavior end to end: ordering, reconnects, close semantics and refused
connections.
"""

from __future__ import annotations

import logging
import socket
import time

import pytest

from stream_log.connection.models import ConnectionState, WriterConfig
from stream_log.errors import SocketConnectionError
from stream_log.transport.os_socket import OsSocketProvider, close_persistent_sockets
from stream_log.writer.handler import StreamLogHandler
from stream_log.writer.stream_writer import StreamWriter

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _close_persistent():
    yield
    close_persistent_sockets()


def wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestTcpDelivery:
    """End-to-end delivery over TCP."""

    def test_sequential_writes_arrive_in_order(self, tcp_sink) -> None:
        with StreamWriter(WriterConfig(tcp_sink.address, write_timeout=2.0)) as writer:
            writer.write(b"test1")
            writer.write(b"test2")
            writer.write(b"test3")

        assert tcp_sink.wait_for(15) == b"test1test2test3"
        assert tcp_sink.accepted == 1

    def test_large_payload_is_delivered_in_full(self, tcp_sink) -> None:
        payload = bytes(range(256)) * 4096
        with StreamWriter(WriterConfig(f"tcp://{tcp_sink.address}", write_timeout=5.0)) as writer:
            result = writer.write(payload)

        assert result.bytes_sent == len(payload)
        assert tcp_sink.wait_for(len(payload), timeout=5.0) == payload

    def test_reconnects_after_close(self, tcp_sink) -> None:
        writer = StreamWriter(tcp_sink.address)
        writer.write(b"a")
        writer.close()
        assert writer.state == ConnectionState.DISCONNECTED
        writer.write(b"b")
        writer.close()

        assert tcp_sink.wait_for(2) == b"ab"
        assert wait_until(lambda: tcp_sink.accepted == 2)

    def test_persistent_connection_survives_close(self, tcp_sink) -> None:
        config = WriterConfig(tcp_sink.address, persistent=True)
        first = StreamWriter(config)
        first.write(b"a")
        first.close()
        assert tcp_sink.wait_for(1) == b"a"
        second = StreamWriter(config)
        second.write(b"b")
        second.close()

        assert first.is_connected
        assert second.is_connected
        assert first.manager.connection.handle is not second.manager.connection.handle
        assert tcp_sink.wait_for(2) == b"ab"
        assert wait_until(lambda: tcp_sink.accepted == 2)

    def test_handler_delivers_records(self, tcp_sink) -> None:
        handler = StreamLogHandler(tcp_sink.address)
        handler.setFormatter(logging.Formatter("%(levelname)s:%(message)s\n"))
        logger = logging.getLogger("tests.integration.tcp")
        logger.propagate = False
        logger.addHandler(handler)
        try:
            logger.warning("first")
            logger.error("second")
        finally:
            logger.removeHandler(handler)
            handler.close()

        assert tcp_sink.wait_for(27) == b"WARNING:first\nERROR:second\n"


class TestConnectionFailures:
    """Refused and unreachable targets."""

    def test_connection_refused(self, unused_tcp_port) -> None:
        writer = StreamWriter(WriterConfig(f"127.0.0.1:{unused_tcp_port}", connection_timeout=1.0))

        with pytest.raises(SocketConnectionError) as exc_info:
            writer.write(b"Hello world")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert writer.state == ConnectionState.DISCONNECTED

    def test_missing_port(self) -> None:
        writer = StreamWriter("localhost", provider=OsSocketProvider())
        with pytest.raises(SocketConnectionError, match="No port"):
            writer.write(b"Hello world")

    @pytest.mark.parametrize("host", ["a" * 64 + ".example", "a..b"])
    def test_unencodable_host(self, host) -> None:
        """A host name IDNA cannot encode fails like any other connect error."""
        writer = StreamWriter(f"tcp://{host}:5140", provider=OsSocketProvider())

        with pytest.raises(SocketConnectionError) as exc_info:
            writer.write(b"Hello world")

        assert isinstance(exc_info.value.__cause__, UnicodeError)
        assert writer.state == ConnectionState.DISCONNECTED


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="unix sockets unavailable")
class TestUnixDelivery:
    """Delivery over a unix domain socket."""

    def test_unix_socket(self, tmp_path) -> None:
        path = tmp_path / "log.sock"
        server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        server.bind(str(path))
        server.listen()
        server.settimeout(2.0)
        try:
            writer = StreamWriter(f"unix://{path}")
            writer.write(b"over unix")
            conn, _ = server.accept()
            with conn:
                conn.settimeout(2.0)
                assert conn.recv(64) == b"over unix"
            writer.close()
        finally:
            server.close()
