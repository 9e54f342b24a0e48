"""Socket provider backed by real OS sockets.

TCP and unix stream sockets are opened with a connect timeout; UDP sockets
are connected datagram sockets. Persistent sockets survive a writer's close()
and are tracked in a process-wide registry only so they can be closed at
interpreter exit; each connect opens a socket of its own.
"""

from __future__ import annotations

import atexit
import contextlib
import socket
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stream_log.transport.base import Failure, SocketMetadata

if TYPE_CHECKING:
    from stream_log.connection.models import ConnectionString


@dataclass
class OsSocketHandle:
    """Handle wrapping an OS socket.

    Attributes:
        sock: The connected socket.
        persistent: Whether the handle lives in the persistent registry.
        timed_out: Set when the last send hit the write timeout.
        closed: Set once the provider closes the socket.
    """

    sock: socket.socket
    persistent: bool
    timed_out: bool = False
    closed: bool = False


_persistent_lock = threading.Lock()
_persistent_sockets: dict[int, OsSocketHandle] = {}


def close_persistent_sockets() -> None:
    """Close every persistent socket opened by this process."""
    with _persistent_lock:
        handles = list(_persistent_sockets.values())
        _persistent_sockets.clear()
    for handle in handles:
        handle.closed = True
        with contextlib.suppress(OSError):
            handle.sock.close()


atexit.register(close_persistent_sockets)


class OsSocketProvider:
    """Socket provider that opens real TCP, UDP and unix domain sockets.

    A write timeout of 0 leaves the socket fully blocking. A send that runs
    into the write timeout is reported as a zero-byte write with
    ``timed_out`` set in the handle metadata.

    Example:
        ```python
        provider = OsSocketProvider()
        writer = StreamWriter(WriterConfig("tcp://127.0.0.1:5140"), provider=provider)
        ```
    """

    def connect(
        self, target: ConnectionString, timeout: float, persistent: bool
    ) -> OsSocketHandle | Failure:
        try:
            sock = self._open(target, timeout)
        except (OSError, UnicodeError) as exc:
            # IDNA encoding of an over-long or empty host label raises UnicodeError.
            return Failure(exc)

        handle = OsSocketHandle(sock=sock, persistent=persistent)
        if persistent:
            with _persistent_lock:
                _persistent_sockets[id(handle)] = handle
        return handle

    def _open(self, target: ConnectionString, timeout: float) -> socket.socket:
        """Open and connect a socket for ``target``.

        Raises:
            OSError: If the address cannot be resolved or the connect fails.
            UnicodeError: If the host name cannot be IDNA-encoded.
        """
        if target.transport == "unix":
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            try:
                sock.settimeout(timeout)
                sock.connect(target.host)
            except OSError:
                sock.close()
                raise
            return sock

        if target.port is None:
            raise OSError(f"No port given for {target.transport} target {target.host!r}")

        if target.transport == "udp":
            family, sock_type, proto, _, address = socket.getaddrinfo(
                target.host, target.port, type=socket.SOCK_DGRAM
            )[0]
            sock = socket.socket(family, sock_type, proto)
            try:
                sock.settimeout(timeout)
                sock.connect(address)
            except OSError:
                sock.close()
                raise
            return sock

        return socket.create_connection((target.host, target.port), timeout=timeout)

    def apply_write_timeout(self, handle: OsSocketHandle, seconds: float) -> bool:
        if handle.closed:
            return False
        try:
            handle.sock.settimeout(seconds if seconds > 0 else None)
        except OSError:
            return False
        handle.timed_out = False
        return True

    def write(self, handle: OsSocketHandle, data: bytes) -> int | Failure:
        if handle.closed:
            return Failure(BrokenPipeError("Write to closed socket"))
        try:
            return handle.sock.send(data)
        except TimeoutError:
            handle.timed_out = True
            return 0
        except OSError as exc:
            return Failure(exc)

    def query_metadata(self, handle: OsSocketHandle) -> SocketMetadata:
        return SocketMetadata(timed_out=handle.timed_out)

    def close(self, handle: OsSocketHandle) -> None:
        handle.closed = True
        if handle.persistent:
            with _persistent_lock:
                _persistent_sockets.pop(id(handle), None)
        with contextlib.suppress(OSError):
            handle.sock.close()
