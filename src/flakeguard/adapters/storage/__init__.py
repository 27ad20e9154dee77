"""Storage adapters implementing core ports."""

from flakeguard.adapters.storage.ring_buffer import RingBufferLogStorage
from flakeguard.adapters.storage.sqlite_logs import SQLiteLogStorage

__all__ = [
    "RingBufferLogStorage",
    "SQLiteLogStorage",
]
