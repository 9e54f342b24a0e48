"""Timeout validation and application for stream connections."""

from __future__ import annotations

from typing import Any

from stream_log.connection.models import (
    DEFAULT_CONNECTION_TIMEOUT,
    DEFAULT_WRITE_TIMEOUT,
    check_connection_timeout,
    check_write_timeout,
)
from stream_log.errors import TimeoutApplyError
from stream_log.transport.base import SocketProvider


class TimeoutController:
    """Holds the connect and write timeouts and applies the write timeout.

    Setters validate and store the value for the next connection only; a
    timeout already applied to an open handle is never changed retroactively.

    Args:
        connection_timeout: Connect timeout in seconds (default: 60.0).
        write_timeout: Write timeout in seconds, 0 disables it (default: 0.0).

    Raises:
        InvalidArgumentError: If a timeout is out of range.
    """

    def __init__(
        self,
        connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
    ) -> None:
        self._connection_timeout = check_connection_timeout(connection_timeout)
        self._write_timeout = check_write_timeout(write_timeout)

    @property
    def connection_timeout(self) -> float:
        """Last validated connect timeout in seconds."""
        return self._connection_timeout

    @connection_timeout.setter
    def connection_timeout(self, seconds: float) -> None:
        self._connection_timeout = check_connection_timeout(seconds)

    @property
    def write_timeout(self) -> float:
        """Last validated write timeout in seconds."""
        return self._write_timeout

    @write_timeout.setter
    def write_timeout(self, seconds: float) -> None:
        self._write_timeout = check_write_timeout(seconds)

    def apply(self, provider: SocketProvider, handle: Any, target: str) -> float:
        """Apply the current write timeout to a freshly connected handle.

        Args:
            provider: Provider that created ``handle``.
            handle: Live socket handle.
            target: Target address, used in the error message.

        Returns:
            The timeout that was applied.

        Raises:
            TimeoutApplyError: If the provider could not apply the timeout.
        """
        seconds = self._write_timeout
        if not provider.apply_write_timeout(handle, seconds):
            raise TimeoutApplyError(
                f"Failed to apply write timeout of {seconds}s to connection to {target}",
                target,
            )
        return seconds
