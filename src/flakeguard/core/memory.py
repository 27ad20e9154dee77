"""Default in-process backend for LogStore."""

from flakeguard.core.models import LogEntry


class InMemoryLogStorage:
    """List-backed implementation of LogStoragePort.

    Entries are never evicted. It does no I/O, so it lives next to the store
    it backs by default; LogStore's lock serializes access.
    """

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    def write(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def read(self) -> list[LogEntry]:
        """Return a snapshot of all entries in insertion order."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def count(self) -> int:
        return len(self._entries)
