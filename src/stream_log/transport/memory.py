"""In-memory socket provider.

Delivers bytes into an in-process buffer instead of a network socket, so the
writer can be exercised without a network or embedded where the "remote end"
lives in the same process.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stream_log.transport.base import Failure, SocketMetadata

if TYPE_CHECKING:
    from stream_log.connection.models import ConnectionString


@dataclass
class MemoryHandle:
    """Handle of an in-memory connection.

    Attributes:
        target: Address the handle was opened for.
        persistent: Whether it was opened with the persistent primitive.
        data: Every byte accepted so far, in order.
        closed: Set once the provider closes the handle.
        write_timeout: Last write timeout applied, None if never applied.
        timed_out: Reported by ``query_metadata``.
    """

    target: str
    persistent: bool
    data: bytearray = field(default_factory=bytearray)
    closed: bool = False
    write_timeout: float | None = None
    timed_out: bool = False

    def getvalue(self) -> bytes:
        """Bytes accepted by this handle."""
        return bytes(self.data)


class MemorySocketProvider:
    """Socket provider backed by in-memory buffers.

    Every connect creates a new handle, persistent or not, so no two writers
    ever share one.

    Args:
        max_chunk: Largest number of bytes a single write accepts. None
            accepts everything, a smaller value forces partial writes.
        refuse_connections: Make every connect return a failure.

    Example:
        >>> provider = MemorySocketProvider()
        >>> writer = StreamWriter(WriterConfig("localhost:1234"), provider=provider)
        >>> _ = writer.write(b"test1")
        >>> provider.handles[0].getvalue()
        b'test1'
    """

    def __init__(self, max_chunk: int | None = None, refuse_connections: bool = False) -> None:
        if max_chunk is not None and max_chunk < 0:
            raise ValueError("max_chunk must be non-negative")
        self._max_chunk = max_chunk
        self.refuse_connections = refuse_connections
        self.handles: list[MemoryHandle] = []
        self.connect_calls = 0

    @property
    def last_handle(self) -> MemoryHandle | None:
        """Most recently created handle."""
        return self.handles[-1] if self.handles else None

    def connect(
        self, target: ConnectionString, timeout: float, persistent: bool
    ) -> MemoryHandle | Failure:
        self.connect_calls += 1
        if self.refuse_connections:
            return Failure(ConnectionRefusedError(f"Connection to {target} refused"))

        handle = MemoryHandle(target=str(target), persistent=persistent)
        self.handles.append(handle)
        return handle

    def apply_write_timeout(self, handle: MemoryHandle, seconds: float) -> bool:
        if handle.closed:
            return False
        handle.write_timeout = seconds
        return True

    def write(self, handle: MemoryHandle, data: bytes) -> int | Failure:
        if handle.closed:
            return Failure(BrokenPipeError("Write to closed in-memory handle"))
        accepted = data if self._max_chunk is None else data[: self._max_chunk]
        handle.data.extend(accepted)
        return len(accepted)

    def query_metadata(self, handle: MemoryHandle) -> SocketMetadata:
        return SocketMetadata(timed_out=handle.timed_out)

    def close(self, handle: MemoryHandle) -> None:
        handle.closed = True
