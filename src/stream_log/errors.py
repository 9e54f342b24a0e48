"""Error taxonomy for stream log delivery.

Every failure the writer can report derives from ``StreamLogError`` so a
caller can decide its own recovery policy (skip the record, fall back to
another handler, crash) from the exception type alone.
"""


class StreamLogError(Exception):
    """Base class for all stream log errors."""

    pass


class InvalidConnectionStringError(StreamLogError, ValueError):
    """Raised when a target address cannot be parsed into a usable host."""

    def __init__(self, message: str, connection_string: str) -> None:
        super().__init__(message)
        self.connection_string = connection_string


class InvalidArgumentError(StreamLogError, ValueError):
    """Raised when a timeout value is out of range."""

    pass


class SocketConnectionError(StreamLogError):
    """Raised when the connect primitive fails.

    The connection stays disconnected, so the next write attempts a fresh
    connect.
    """

    def __init__(self, message: str, target: str) -> None:
        super().__init__(message)
        self.target = target


class TimeoutApplyError(SocketConnectionError):
    """Raised when the write timeout cannot be applied to a new connection."""

    pass


class WriteError(StreamLogError):
    """Raised when the write primitive reports a hard failure.

    Attributes:
        bytes_sent: Bytes of the original payload accepted before the failure.
        payload_size: Total size of the payload that was being written.
    """

    def __init__(self, message: str, bytes_sent: int, payload_size: int) -> None:
        super().__init__(message)
        self.bytes_sent = bytes_sent
        self.payload_size = payload_size

    @property
    def bytes_remaining(self) -> int:
        """Bytes of the payload that were never accepted by the socket layer."""
        return self.payload_size - self.bytes_sent


class WriteTimeoutError(WriteError):
    """Raised when a partial write is followed by a timed-out socket."""

    pass


__all__ = [
    "InvalidArgumentError",
    "InvalidConnectionStringError",
    "SocketConnectionError",
    "StreamLogError",
    "TimeoutApplyError",
    "WriteError",
    "WriteTimeoutError",
]
