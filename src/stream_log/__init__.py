"""Stream Log.

Delivers formatted log entries to a remote endpoint over a persistent or
transient socket connection, retrying partial writes and reporting every
failure as a typed error.
"""

from stream_log.connection import ConnectionState, ConnectionString, WriterConfig
from stream_log.errors import (
    InvalidArgumentError,
    InvalidConnectionStringError,
    SocketConnectionError,
    StreamLogError,
    TimeoutApplyError,
    WriteError,
    WriteTimeoutError,
)
from stream_log.transport import MemorySocketProvider, OsSocketProvider, SocketProvider
from stream_log.writer import StreamLogHandler, StreamWriter, WriteResult

__version__ = "0.1.0"

__all__ = [
    "ConnectionState",
    "ConnectionString",
    "InvalidArgumentError",
    "InvalidConnectionStringError",
    "MemorySocketProvider",
    "OsSocketProvider",
    "SocketConnectionError",
    "SocketProvider",
    "StreamLogError",
    "StreamLogHandler",
    "StreamWriter",
    "TimeoutApplyError",
    "WriteError",
    "WriteResult",
    "WriteTimeoutError",
    "WriterConfig",
]
