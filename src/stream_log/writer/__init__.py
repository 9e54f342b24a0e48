"""Stream writer and the logging handler built on it."""

from stream_log.writer.handler import StreamLogHandler
from stream_log.writer.stream_writer import StreamWriter, WriteResult, WriterMetrics

__all__ = [
    "StreamLogHandler",
    "StreamWriter",
    "WriteResult",
    "WriterMetrics",
]
