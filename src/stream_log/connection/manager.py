"""Connection lifecycle for a single stream writer."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from stream_log.connection.models import Connection, ConnectionState, ConnectionString
from stream_log.connection.timeouts import TimeoutController
from stream_log.errors import SocketConnectionError, TimeoutApplyError
from stream_log.transport.base import Failure, SocketProvider

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the lifecycle of one socket handle.

    The manager moves through three states:

    - DISCONNECTED: no handle; the next ``ensure_connected()`` connects
    - CONNECTING: a connect attempt is in progress
    - CONNECTED: a handle is held and its write timeout has been applied

    Connecting is lazy: ``ensure_connected()`` reuses the held handle while
    CONNECTED and only connects from DISCONNECTED. Validity of the handle is
    tracked by the manager itself, never by probing the provider.

    Args:
        target: Parsed target address.
        provider: Socket provider used for the raw primitives.
        timeouts: Timeout controller for connect and write timeouts.
        persistent: Use the persistent connect primitive (default: False).

    Example:
        ```python
        manager = ConnectionManager(
            ConnectionString.parse("tcp://127.0.0.1:5140"),
            OsSocketProvider(),
            TimeoutController(connection_timeout=5.0),
        )
        handle = manager.ensure_connected()
        ...
        manager.close()
        ```
    """

    def __init__(
        self,
        target: ConnectionString,
        provider: SocketProvider,
        timeouts: TimeoutController,
        persistent: bool = False,
    ) -> None:
        self._target = target
        self._provider = provider
        self._timeouts = timeouts
        self._persistent = persistent
        self._state = ConnectionState.DISCONNECTED
        self._connection: Connection | None = None
        self._connect_count = 0

    @property
    def target(self) -> ConnectionString:
        """Target address of this manager."""
        return self._target

    @property
    def provider(self) -> SocketProvider:
        """Socket provider used for the raw primitives."""
        return self._provider

    @property
    def timeouts(self) -> TimeoutController:
        """Timeout controller applied on every connect."""
        return self._timeouts

    @property
    def state(self) -> ConnectionState:
        """Current state of the manager."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if a usable handle is held."""
        return self._state == ConnectionState.CONNECTED

    @property
    def persistent(self) -> bool:
        """Whether the next connect uses the persistent primitive."""
        return self._persistent

    @persistent.setter
    def persistent(self, value: bool) -> None:
        self._persistent = bool(value)

    @property
    def connection(self) -> Connection | None:
        """The held connection, or None while disconnected."""
        return self._connection

    @property
    def connect_count(self) -> int:
        """Number of successful connects performed by this manager."""
        return self._connect_count

    def _log_state_change(
        self,
        from_state: ConnectionState,
        to_state: ConnectionState,
        trigger: str,
    ) -> None:
        """Log state transition with structured JSON."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        log_entry = {
            "event": "connection_state_change",
            "target": str(self._target),
            "from_state": from_state.value,
            "to_state": to_state.value,
            "trigger": trigger,
            "persistent": self._persistent,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        logger.debug(json.dumps(log_entry))

    def _transition(self, to_state: ConnectionState, trigger: str) -> None:
        old_state = self._state
        self._state = to_state
        self._log_state_change(old_state, to_state, trigger)

    def ensure_connected(self) -> Any:
        """Return the live handle, connecting first if disconnected.

        Returns:
            The opaque provider handle.

        Raises:
            SocketConnectionError: If the connect primitive fails.
            TimeoutApplyError: If the write timeout cannot be applied.
        """
        if self._state == ConnectionState.CONNECTED and self._connection is not None:
            return self._connection.handle

        self._transition(ConnectionState.CONNECTING, "connect_requested")
        persistent = self._persistent
        try:
            handle = self._provider.connect(
                self._target, self._timeouts.connection_timeout, persistent
            )
        except BaseException:
            self._transition(ConnectionState.DISCONNECTED, "connect_raised")
            raise

        if isinstance(handle, Failure):
            self._transition(ConnectionState.DISCONNECTED, "connect_failed")
            reason = f": {handle.error}" if handle.error is not None else ""
            raise SocketConnectionError(
                f"Failed to connect to {self._target}{reason}", str(self._target)
            ) from handle.error

        try:
            self._timeouts.apply(self._provider, handle, str(self._target))
        except TimeoutApplyError:
            # A handle without its timeout is unusable; persistent ones too.
            self._provider.close(handle)
            self._transition(ConnectionState.DISCONNECTED, "timeout_apply_failed")
            raise

        self._connection = Connection(handle=handle, is_persistent=persistent)
        self._connect_count += 1
        self._transition(ConnectionState.CONNECTED, "connected")
        return handle

    def close(self) -> None:
        """Close the held connection unless it is persistent.

        Persistent connections stay open and CONNECTED so later writes reuse
        them. Closing while DISCONNECTED is a no-op.
        """
        if self._state != ConnectionState.CONNECTED or self._connection is None:
            return
        if self._connection.is_persistent:
            return

        connection = self._connection
        self._connection = None
        connection.is_connected = False
        self._provider.close(connection.handle)
        self._transition(ConnectionState.DISCONNECTED, "closed")

    def discard(self, trigger: str = "discarded") -> None:
        """Drop the held connection after a failed write.

        Unlike ``close()`` this also closes persistent handles, since a handle
        that failed mid-write must not be handed to the next write.
        """
        if self._connection is None:
            self._state = ConnectionState.DISCONNECTED
            return

        connection = self._connection
        self._connection = None
        connection.is_connected = False
        self._provider.close(connection.handle)
        self._transition(ConnectionState.DISCONNECTED, trigger)
