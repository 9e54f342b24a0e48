"""Connection lifecycle: target addresses, timeouts and the connection manager."""

from stream_log.connection.manager import ConnectionManager
from stream_log.connection.models import (
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    Connection,
    ConnectionState,
    ConnectionString,
    WriterConfig,
)
from stream_log.connection.timeouts import TimeoutController

__all__ = [
    "DEFAULT_CONNECTION_TIMEOUT",
    "DEFAULT_WRITE_TIMEOUT",
    "Connection",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionString",
    "TimeoutController",
    "WriterConfig",
]
