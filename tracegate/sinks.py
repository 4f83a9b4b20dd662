"""sinks.py - Destinations for rendered trace messages.

A sink receives ``(source, message, level)`` from ``Tracer.emit`` and decides
how to surface it. Three are provided:

    LoggingSink  - forwards to the ``tracegate.trace`` logger (the default).
    StreamSink   - prints ``[source] message`` lines to a stream (default: stderr).
    BufferSink   - keeps the latest records in a RingBuffer for inspection.

Any call site may pass ``sink=`` to ``trace(...)``; otherwise the process-wide
default from ``get_default_sink()`` is used.

Typical usage::

    from tracegate import BufferSink, set_default_sink

    sink = BufferSink(capacity=50)
    set_default_sink(sink)
"""

import logging
import sys
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional

from .buffer import RingBuffer
from .config import LogLevel


class TraceSink(ABC):
    """Abstract base class for trace destinations.

    Implementations should not raise. ``Tracer.emit`` contains and logs
    anything that escapes ``display()`` so the traced code is unaffected.

    Example:
        >>> class ListSink(TraceSink):
        ...     def __init__(self):
        ...         self.lines = []
        ...     def display(self, source, message, level):
        ...         self.lines.append(f"{source}: {message}")
    """

    @abstractmethod
    def display(self, source: str, message: str, level: LogLevel) -> None:
        """Surface one rendered trace message.

        Args:
            source: Qualified name of the function containing the call site.
            message: Rendered arguments, each followed by a space.
            level: Severity requested at the call site.
        """


class LoggingSink(TraceSink):
    """Forward trace messages to a standard library logger.

    The LogLevel is mapped to the matching ``logging`` level, so the usual
    logger and handler configuration decides what is shown.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("tracegate.trace")

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def display(self, source: str, message: str, level: LogLevel) -> None:
        self._logger.log(level.to_logging_level(), "[%s] %s", source, message)


class StreamSink(TraceSink):
    """Print trace messages to a writable stream.

    Output format::

        [load_index] COUNT:3 (LEN):12

    Attributes:
        _stream: The writable file-like object to write to.
        _show_timestamp: If True, each line starts with a UTC timestamp.
    """

    def __init__(self, stream=None, show_timestamp: bool = False) -> None:
        """Initialise the stream sink.

        Args:
            stream: A writable file-like object. Defaults to ``sys.stderr``.
            show_timestamp: Prefix each line with an ISO-8601 UTC timestamp.
        """
        self._stream = stream or sys.stderr
        self._show_timestamp = show_timestamp

    def display(self, source: str, message: str, level: LogLevel) -> None:
        prefix = ""
        if self._show_timestamp:
            prefix = f"{datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')} "
        print(f"{prefix}[{source}] {message}", file=self._stream)


class BufferSink(TraceSink):
    """Keep the most recent trace records in memory."""

    def __init__(self, capacity: int = 200) -> None:
        self.buffer = RingBuffer(capacity=capacity)

    def display(self, source: str, message: str, level: LogLevel) -> None:
        self.buffer.push(source, message, level)

    def messages(self) -> List[str]:
        return self.buffer.messages()

    def clear(self) -> None:
        self.buffer.clear()


_default_sink: TraceSink = LoggingSink()


def get_default_sink() -> TraceSink:
    """Return the sink used when a trace call names none."""
    return _default_sink


def set_default_sink(sink: TraceSink) -> TraceSink:
    """Replace the default sink and return the previous one."""
    global _default_sink
    previous = _default_sink
    _default_sink = sink
    return previous
