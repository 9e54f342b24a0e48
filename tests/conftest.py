"""Pytest configuration and fixtures for stream-log tests."""

from __future__ import annotations

import contextlib
import socket
import threading
import time
from collections.abc import Iterator

import pytest

from stream_log.connection.models import WriterConfig
from stream_log.transport.memory import MemorySocketProvider
from stream_log.writer.stream_writer import StreamWriter


@pytest.fixture()
def memory_provider() -> MemorySocketProvider:
    """Provide an in-memory socket provider that accepts every byte."""
    return MemorySocketProvider()


@pytest.fixture()
def memory_writer(memory_provider: MemorySocketProvider) -> StreamWriter:
    """Provide a transient writer bound to the in-memory provider."""
    return StreamWriter(WriterConfig("localhost:1234"), provider=memory_provider)


class TcpSink:
    """Loopback TCP server that records every byte it receives."""

    def __init__(self) -> None:
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._server.bind(("127.0.0.1", 0))
        self._server.listen()
        self._server.settimeout(0.05)
        self.host, self.port = self._server.getsockname()[:2]
        self.accepted = 0
        self._received = bytearray()
        self._cond = threading.Condition()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        self._acceptor = threading.Thread(target=self._accept_loop, daemon=True)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    def start(self) -> None:
        self._acceptor.start()

    def stop(self) -> None:
        self._stop.set()
        self._acceptor.join(timeout=2.0)
        for thread in self._threads:
            thread.join(timeout=2.0)
        self._server.close()

    def _accept_loop(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            with self._cond:
                self.accepted += 1
            thread = threading.Thread(target=self._read_loop, args=(conn,), daemon=True)
            self._threads.append(thread)
            thread.start()

    def _read_loop(self, conn: socket.socket) -> None:
        conn.settimeout(0.05)
        with conn:
            while not self._stop.is_set():
                try:
                    chunk = conn.recv(65536)
                except TimeoutError:
                    continue
                except OSError:
                    return
                if not chunk:
                    return
                with self._cond:
                    self._received.extend(chunk)
                    self._cond.notify_all()

    def wait_for(self, size: int, timeout: float = 2.0) -> bytes:
        """Block until at least ``size`` bytes arrived, then return them all."""
        deadline = time.monotonic() + timeout
        with self._cond:
            while len(self._received) < size:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            return bytes(self._received)


@pytest.fixture()
def tcp_sink() -> Iterator[TcpSink]:
    """Start a loopback TCP sink for the duration of a test."""
    sink = TcpSink()
    sink.start()
    try:
        yield sink
    finally:
        sink.stop()


@pytest.fixture()
def unused_tcp_port() -> int:
    """Return a loopback port with nothing listening on it."""
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
