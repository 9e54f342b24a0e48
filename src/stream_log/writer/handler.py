"""Logging handler that delivers formatted records through a StreamWriter."""

from __future__ import annotations

import logging

from stream_log.connection.models import ConnectionState, WriterConfig
from stream_log.transport.base import SocketProvider
from stream_log.writer.stream_writer import StreamWriter

_PACKAGE_LOGGER = "stream_log"


def _is_foreign_record(record: logging.LogRecord) -> bool:
    """Reject records emitted by this package's own loggers.

    The writer logs its connection state changes; delivering those through
    the handler that caused them would recurse.
    """
    name = record.name or ""
    return not (name == _PACKAGE_LOGGER or name.startswith(f"{_PACKAGE_LOGGER}."))


class StreamLogHandler(logging.Handler):
    """``logging.Handler`` that sends each formatted record over a socket.

    The record is rendered by the handler's formatter, encoded and passed to
    ``StreamWriter.write()`` as-is; no delimiter is added, so include one in
    the format string if the receiving end needs it.

    Unlike the stdlib handlers, delivery failures are not routed to
    ``handleError()``: they propagate to the logging call so the caller can
    decide what to do with the record.

    Args:
        config: Writer configuration, or a bare connection string.
        level: Minimum level of records to handle (default: NOTSET).
        provider: Socket provider (default: OsSocketProvider).
        encoding: Encoding of the formatted text (default: "utf-8").

    Example:
        ```python
        handler = StreamLogHandler(WriterConfig("tcp://logs.internal:5140", write_timeout=2.0))
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s\\n"))
        logging.getLogger("app").addHandler(handler)
        ```
    """

    def __init__(
        self,
        config: WriterConfig | str,
        level: int = logging.NOTSET,
        *,
        provider: SocketProvider | None = None,
        encoding: str = "utf-8",
    ) -> None:
        super().__init__(level)
        self._writer = StreamWriter(config, provider=provider)
        self.encoding = encoding
        self.addFilter(_is_foreign_record)

    @property
    def writer(self) -> StreamWriter:
        """Underlying stream writer."""
        return self._writer

    @property
    def connection_string(self) -> str:
        """Connection string exactly as configured."""
        return self._writer.connection_string

    @property
    def connection_timeout(self) -> float:
        """Connect timeout in seconds."""
        return self._writer.connection_timeout

    @connection_timeout.setter
    def connection_timeout(self, seconds: float) -> None:
        self._writer.connection_timeout = seconds

    @property
    def write_timeout(self) -> float:
        """Write timeout in seconds."""
        return self._writer.write_timeout

    @write_timeout.setter
    def write_timeout(self, seconds: float) -> None:
        self._writer.write_timeout = seconds

    @property
    def persistent(self) -> bool:
        """Whether connections are persistent."""
        return self._writer.persistent

    @persistent.setter
    def persistent(self, value: bool) -> None:
        self._writer.persistent = value

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._writer.state

    @property
    def is_connected(self) -> bool:
        """Check if the handler holds a usable connection."""
        return self._writer.is_connected

    def emit(self, record: logging.LogRecord) -> None:
        """Format ``record`` and write it to the socket.

        Raises:
            StreamLogError: Any connection or write failure.
        """
        payload = self.format(record).encode(self.encoding)
        self._writer.write(payload)

    def close(self) -> None:
        """Close the connection (unless persistent) and detach the handler."""
        self.acquire()
        try:
            self._writer.close()
        finally:
            self.release()
        super().close()
