"""Base Protocol for socket providers.

A socket provider owns the raw connect/write/timeout/close primitives. The
connection manager and the write loop only ever talk to this seam, so a
real-OS provider and an in-memory provider are interchangeable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from stream_log.connection.models import ConnectionString


@dataclass(frozen=True, slots=True)
class Failure:
    """Failure sentinel returned by a primitive that failed outright.

    Distinct from any valid byte count or handle. ``error`` holds the
    underlying OS error when the provider has one.
    """

    error: BaseException | None = None

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class SocketMetadata:
    """Live metadata of a connected handle.

    Attributes:
        timed_out: True when the last blocking operation hit the write timeout.
    """

    timed_out: bool


@runtime_checkable
class SocketProvider(Protocol):
    """Protocol defining the raw socket primitives used by the writer.

    Handles are opaque to callers; only the provider that created a handle
    may interpret it.

    Example:
        >>> from stream_log.transport import MemorySocketProvider, SocketProvider
        >>> isinstance(MemorySocketProvider(), SocketProvider)
        True
    """

    def connect(
        self, target: ConnectionString, timeout: float, persistent: bool
    ) -> Any | Failure:
        """Open a connection to ``target``.

        Args:
            target: Parsed target address.
            timeout: Connect timeout in seconds.
            persistent: Whether to open (or reuse) a persistent connection.

        Returns:
            An opaque handle, or a ``Failure`` sentinel.
        """
        ...

    def apply_write_timeout(self, handle: Any, seconds: float) -> bool:
        """Apply the write timeout to a live handle.

        Returns:
            True if the timeout was applied.
        """
        ...

    def write(self, handle: Any, data: bytes) -> int | Failure:
        """Write as much of ``data`` as the socket accepts.

        Returns:
            Non-negative count of bytes accepted, or a ``Failure`` sentinel.
        """
        ...

    def query_metadata(self, handle: Any) -> SocketMetadata:
        """Return live metadata for ``handle``."""
        ...

    def close(self, handle: Any) -> None:
        """Close ``handle``."""
        ...
