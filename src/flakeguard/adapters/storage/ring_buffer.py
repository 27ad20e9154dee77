"""Ring buffer storage adapter for log entries.

Provides bounded in-memory storage that automatically evicts the oldest
entries when the buffer is full. Useful for long local runs that only care
about the tail of the log.
"""

from collections import deque

from flakeguard.core.models import LogEntry


class RingBufferLogStorage:
    """Ring buffer implementation of LogStoragePort.

    Stores log entries in a fixed-size circular buffer. When the buffer
    is full, the oldest entry is automatically evicted to make room for
    new entries.

    Args:
        max_size: Maximum number of entries to store.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[LogEntry] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        self._buffer.append(entry)

    def read(self) -> list[LogEntry]:
        """Return a snapshot of the retained entries, oldest first."""
        return list(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def count(self) -> int:
        return len(self._buffer)
