"""buffer.py - Fixed-capacity store for trace records.

RingBuffer backs ``BufferSink``: it keeps the most recent trace messages in
memory so they can be inspected (by tests, or by an application that wants
to show recent diagnostics on demand) without writing anything out.

Design decisions:
    - ``collections.deque(maxlen=N)`` gives O(1) append and drops the oldest
      record once the buffer is full.
    - ``flash()`` returns the contents and clears the buffer in one call.
"""

from collections import deque
from typing import List
import time

from .config import LogLevel


class TraceRecord:
    """One message delivered to a sink.

    Attributes:
        timestamp (float): ``time.monotonic()`` value at creation.
        source (str): Qualified name of the function that traced.
        message (str): The rendered trace message.
        level (LogLevel): Severity the call site asked for.
    """

    __slots__ = ("timestamp", "source", "message", "level")

    def __init__(
        self,
        timestamp: float,
        source: str,
        message: str,
        level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        self.timestamp = timestamp
        self.source = source
        self.message = message
        self.level = level

    def __repr__(self) -> str:  # pragma: no cover
        return f"TraceRecord({self.timestamp:.3f}, {self.source!r}, {self.message!r})"


class RingBuffer:
    """Circular buffer of TraceRecord objects.

    When full, the oldest record is dropped on the next ``push()``.

    Example:
        >>> buf = RingBuffer(capacity=3)
        >>> buf.push("load", "X:1 ")
        >>> buf.push("load", "X:2 ")
        >>> len(buf)
        2
        >>> [r.message for r in buf.flash()]
        ['X:1 ', 'X:2 ']
        >>> len(buf)
        0
    """

    def __init__(self, capacity: int = 200) -> None:
        """Initialise the buffer.

        Args:
            capacity: Maximum number of records retained. Defaults to 200.

        Raises:
            ValueError: If ``capacity`` is less than 1.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._buffer: deque[TraceRecord] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen

    def push(self, source: str, message: str, level: LogLevel = LogLevel.DEBUG) -> None:
        """Append a record, evicting the oldest one if the buffer is full."""
        self._buffer.append(TraceRecord(time.monotonic(), source, message, level))

    def flash(self) -> List[TraceRecord]:
        """Return all records (oldest first) and clear the buffer."""
        records = list(self._buffer)
        self._buffer.clear()
        return records

    def snapshot(self) -> List[TraceRecord]:
        """Return all records without clearing the buffer."""
        return list(self._buffer)

    def messages(self) -> List[str]:
        """Return just the message text of every record, oldest first."""
        return [record.message for record in self._buffer]

    def clear(self) -> None:
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)
