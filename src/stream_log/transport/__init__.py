"""Socket providers: the raw connect/write/timeout/close primitives."""

from stream_log.transport.base import Failure, SocketMetadata, SocketProvider
from stream_log.transport.memory import MemoryHandle, MemorySocketProvider
from stream_log.transport.os_socket import (
    OsSocketHandle,
    OsSocketProvider,
    close_persistent_sockets,
)

__all__ = [
    "Failure",
    "MemoryHandle",
    "MemorySocketProvider",
    "OsSocketHandle",
    "OsSocketProvider",
    "SocketMetadata",
    "SocketProvider",
    "close_persistent_sockets",
]
