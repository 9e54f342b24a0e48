"""Reliable stream writer: delivers byte strings over a socket connection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Self

from stream_log.connection.manager import ConnectionManager
from stream_log.connection.models import ConnectionState, ConnectionString, WriterConfig
from stream_log.connection.timeouts import TimeoutController
from stream_log.errors import WriteError, WriteTimeoutError
from stream_log.transport.base import Failure, SocketProvider
from stream_log.transport.os_socket import OsSocketProvider


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of a successful write.

    Attributes:
        bytes_sent: Bytes accepted by the socket layer (the whole payload).
        write_calls: Number of write primitive invocations it took.
    """

    bytes_sent: int
    write_calls: int


@dataclass
class WriterMetrics:
    """Counters for a stream writer over its lifetime."""

    state: ConnectionState
    connect_count: int
    write_count: int
    write_calls: int
    partial_writes: int
    bytes_sent: int
    failure_count: int


class StreamWriter:
    """Writes byte strings to a remote endpoint, retrying partial writes.

    Each ``write()`` is atomic from the caller's point of view: either every
    byte was accepted by the socket layer and a ``WriteResult`` is returned,
    or a typed error is raised. Partial writes are retried with the unsent
    suffix until the payload is complete, the provider reports a hard
    failure, or the socket reports that the write timed out. After a failed
    write the connection is dropped so the next write connects afresh; the
    failed payload itself is never resent.

    The writer performs no locking. Callers sharing one instance between
    threads must serialize ``write()`` themselves.

    Args:
        config: Writer configuration, or a bare connection string.
        provider: Socket provider (default: OsSocketProvider).

    Raises:
        InvalidConnectionStringError: If the connection string is malformed.

    Example:
        ```python
        with StreamWriter(WriterConfig("tcp://127.0.0.1:5140", write_timeout=2.0)) as writer:
            writer.write(b"first record\\n")
            writer.write(b"second record\\n")
        ```
    """

    def __init__(
        self,
        config: WriterConfig | str,
        provider: SocketProvider | None = None,
    ) -> None:
        if isinstance(config, str):
            config = WriterConfig(connection_string=config)
        self._config = config
        self._target = ConnectionString.parse(config.connection_string)
        self._provider = provider if provider is not None else OsSocketProvider()
        self._timeouts = TimeoutController(
            connection_timeout=config.connection_timeout,
            write_timeout=config.write_timeout,
        )
        self._manager = ConnectionManager(
            self._target,
            self._provider,
            self._timeouts,
            persistent=config.persistent,
        )

        self._write_count = 0
        self._write_calls = 0
        self._partial_writes = 0
        self._bytes_sent = 0
        self._failure_count = 0

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    @property
    def config(self) -> WriterConfig:
        """Configuration the writer was constructed with."""
        return self._config

    @property
    def connection_string(self) -> str:
        """Connection string exactly as configured."""
        return self._config.connection_string

    @property
    def target(self) -> ConnectionString:
        """Parsed target address."""
        return self._target

    @property
    def provider(self) -> SocketProvider:
        """Socket provider used for the raw primitives."""
        return self._provider

    @property
    def manager(self) -> ConnectionManager:
        """Connection manager owning the socket handle."""
        return self._manager

    @property
    def connection_timeout(self) -> float:
        """Connect timeout in seconds, used by the next connect."""
        return self._timeouts.connection_timeout

    @connection_timeout.setter
    def connection_timeout(self, seconds: float) -> None:
        self._timeouts.connection_timeout = seconds

    @property
    def write_timeout(self) -> float:
        """Write timeout in seconds, applied on the next connect."""
        return self._timeouts.write_timeout

    @write_timeout.setter
    def write_timeout(self, seconds: float) -> None:
        self._timeouts.write_timeout = seconds

    @property
    def persistent(self) -> bool:
        """Whether the next connect opens a persistent connection."""
        return self._manager.persistent

    @persistent.setter
    def persistent(self, value: bool) -> None:
        self._manager.persistent = value

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._manager.state

    @property
    def is_connected(self) -> bool:
        """Check if the writer holds a usable connection."""
        return self._manager.is_connected

    def write(self, payload: bytes) -> WriteResult:
        """Send ``payload`` in full over the connection.

        Connects first if needed. A write primitive that accepts fewer bytes
        than requested is invoked again with the unsent suffix, unless the
        socket reports that it timed out.

        Args:
            payload: Formatted log entry.

        Returns:
            WriteResult with the byte count and number of primitive calls.

        Raises:
            SocketConnectionError: If connecting fails.
            TimeoutApplyError: If the write timeout cannot be applied.
            WriteError: If the write primitive fails outright.
            WriteTimeoutError: If a partial write is followed by a timeout.
        """
        if not isinstance(payload, bytes | bytearray | memoryview):
            raise TypeError(f"payload must be bytes, not {type(payload).__name__}")

        handle = self._manager.ensure_connected()

        data = bytes(payload)
        payload_size = len(data)
        remaining = data
        sent = 0
        calls = 0

        while remaining:
            result = self._provider.write(handle, remaining)
            calls += 1
            self._write_calls += 1

            if isinstance(result, Failure) or result < 0:
                cause = result.error if isinstance(result, Failure) else None
                self._fail("write_failed")
                raise WriteError(
                    f"Failed to write to {self._target} after {sent} of {payload_size} bytes",
                    bytes_sent=sent,
                    payload_size=payload_size,
                ) from cause

            if result >= len(remaining):
                sent += len(remaining)
                break

            sent += result
            self._partial_writes += 1
            if self._provider.query_metadata(handle).timed_out:
                self._fail("write_timed_out")
                raise WriteTimeoutError(
                    f"Write to {self._target} timed out after {sent} of {payload_size} bytes",
                    bytes_sent=sent,
                    payload_size=payload_size,
                )
            remaining = remaining[result:]

        self._write_count += 1
        self._bytes_sent += sent
        return WriteResult(bytes_sent=sent, write_calls=calls)

    def _fail(self, trigger: str) -> None:
        self._failure_count += 1
        self._manager.discard(trigger)

    def close(self) -> None:
        """Close the connection unless it is persistent.

        Safe to call repeatedly; the next write reconnects.
        """
        self._manager.close()

    def get_metrics(self) -> WriterMetrics:
        """Get current metrics for this writer.

        Returns:
            WriterMetrics: Connection state and delivery counters.
        """
        return WriterMetrics(
            state=self._manager.state,
            connect_count=self._manager.connect_count,
            write_count=self._write_count,
            write_calls=self._write_calls,
            partial_writes=self._partial_writes,
            bytes_sent=self._bytes_sent,
            failure_count=self._failure_count,
        )
