"""Domain models for stream log connections.

This module defines the target address, the connection state machine states
and the writer configuration shared by the connection manager and the writer.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self
from urllib.parse import urlsplit

from stream_log.errors import InvalidArgumentError, InvalidConnectionStringError

DEFAULT_CONNECTION_TIMEOUT = 60.0
DEFAULT_WRITE_TIMEOUT = 0.0

SUPPORTED_SCHEMES = frozenset({"tcp", "udp", "unix"})

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def check_connection_timeout(seconds: float) -> float:
    """Validate a connect timeout.

    Raises:
        InvalidArgumentError: If ``seconds`` is not a finite number above zero.
    """
    value = float(seconds)
    if not math.isfinite(value) or value <= 0:
        raise InvalidArgumentError(
            f"Connection timeout must be a positive number of seconds, got {seconds!r}"
        )
    return value


def check_write_timeout(seconds: float) -> float:
    """Validate a write timeout. Zero disables the timeout.

    Raises:
        InvalidArgumentError: If ``seconds`` is negative or not finite.
    """
    value = float(seconds)
    if not math.isfinite(value) or value < 0:
        raise InvalidArgumentError(
            f"Write timeout must be zero or a positive number of seconds, got {seconds!r}"
        )
    return value


@dataclass(frozen=True, slots=True)
class ConnectionString:
    """Validated target address.

    Accepts ``scheme://host:port``, ``host:port`` and bare ``host`` forms.
    For the ``unix`` scheme the host is the socket path.

    Attributes:
        scheme: Lower-cased scheme, or None when the raw string had none.
        host: Host name, IP address or unix socket path. Never empty.
        port: Port number, or None when the raw string had none.
        raw: The string the address was parsed from.
    """

    scheme: str | None
    host: str
    port: int | None
    raw: str = field(default="", compare=False)

    @classmethod
    def parse(cls, raw: str) -> Self:
        """Parse and validate a target address.

        Args:
            raw: Address such as ``"tcp://localhost:9090"`` or ``"127.0.0.1:514"``.

        Returns:
            The parsed ConnectionString.

        Raises:
            InvalidConnectionStringError: If no host can be extracted, the
                scheme is unsupported or the port is out of range.
        """
        if not isinstance(raw, str) or not raw.strip():
            raise InvalidConnectionStringError("Connection string is empty", str(raw))

        scheme: str | None = None
        rest = raw.strip()
        if "://" in rest:
            scheme, rest = rest.split("://", 1)
            scheme = scheme.lower()
            if scheme not in SUPPORTED_SCHEMES:
                raise InvalidConnectionStringError(
                    f"Unsupported scheme {scheme!r} in connection string {raw!r}", raw
                )

        if scheme == "unix":
            if not rest:
                raise InvalidConnectionStringError(
                    f"No socket path in connection string {raw!r}", raw
                )
            return cls(scheme=scheme, host=rest, port=None, raw=raw)

        try:
            parts = urlsplit(f"//{rest}")
            port = parts.port
        except ValueError as exc:
            raise InvalidConnectionStringError(
                f"Invalid address in connection string {raw!r}: {exc}", raw
            ) from exc

        if parts.path not in ("", "/") or parts.query or parts.fragment:
            raise InvalidConnectionStringError(
                f"Unexpected path in connection string {raw!r}", raw
            )

        host = parts.hostname
        if not host:
            raise InvalidConnectionStringError(f"No host in connection string {raw!r}", raw)
        if port == 0:
            raise InvalidConnectionStringError(f"Port 0 in connection string {raw!r}", raw)

        return cls(scheme=scheme, host=host, port=port, raw=raw)

    @property
    def transport(self) -> str:
        """Effective transport; plain ``host:port`` means TCP."""
        return self.scheme or "tcp"

    def __str__(self) -> str:
        return self.raw or self._render()

    def _render(self) -> str:
        if self.transport == "unix":
            return f"unix://{self.host}"
        host = f"[{self.host}]" if ":" in self.host else self.host
        address = host if self.port is None else f"{host}:{self.port}"
        return f"{self.scheme}://{address}" if self.scheme else address


class ConnectionState(str, Enum):
    """State of a connection manager.

    Attributes:
        DISCONNECTED: No handle is held; the next write connects.
        CONNECTING: A connect attempt is in progress.
        CONNECTED: A handle is held and its write timeout has been applied.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(slots=True)
class Connection:
    """A socket handle owned by exactly one connection manager.

    Attributes:
        handle: Opaque handle returned by the socket provider.
        is_persistent: Whether the handle came from the persistent connect primitive.
        is_connected: Cleared by the manager when it gives the handle up.
    """

    handle: Any
    is_persistent: bool
    is_connected: bool = True


@dataclass(frozen=True, slots=True)
class WriterConfig:
    """Configuration for a stream writer.

    Attributes:
        connection_string: Target address, validated on construction.
        connection_timeout: Connect timeout in seconds, must be > 0 (default: 60.0).
        write_timeout: Write timeout in seconds, 0 disables it (default: 0.0).
        persistent: Use persistent connections that survive close() (default: False).

    Raises:
        InvalidConnectionStringError: If the connection string is malformed.
        InvalidArgumentError: If a timeout is out of range.
    """

    connection_string: str
    connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    persistent: bool = False

    def __post_init__(self) -> None:
        ConnectionString.parse(self.connection_string)
        object.__setattr__(
            self, "connection_timeout", check_connection_timeout(self.connection_timeout)
        )
        object.__setattr__(self, "write_timeout", check_write_timeout(self.write_timeout))

    @property
    def target(self) -> ConnectionString:
        """Parsed form of ``connection_string``."""
        return ConnectionString.parse(self.connection_string)

    @classmethod
    def from_env(cls, connection_string: str | None = None, prefix: str = "STREAM_LOG") -> Self:
        """Build a configuration from environment variables.

        Reads ``{prefix}_CONNECTION_STRING``, ``{prefix}_CONNECTION_TIMEOUT``,
        ``{prefix}_WRITE_TIMEOUT`` and ``{prefix}_PERSISTENT``. An explicit
        ``connection_string`` argument wins over the environment.

        Raises:
            InvalidConnectionStringError: If no connection string is available.
        """
        raw = connection_string or os.getenv(f"{prefix}_CONNECTION_STRING", "")
        return cls(
            connection_string=raw,
            connection_timeout=float(
                os.getenv(f"{prefix}_CONNECTION_TIMEOUT", str(DEFAULT_CONNECTION_TIMEOUT))
            ),
            write_timeout=float(
                os.getenv(f"{prefix}_WRITE_TIMEOUT", str(DEFAULT_WRITE_TIMEOUT))
            ),
            persistent=os.getenv(f"{prefix}_PERSISTENT", "").strip().lower() in _TRUTHY,
        )
