"""Port interfaces for storage and browser adapters.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Awaitable, Iterable
from typing import Any, Protocol, runtime_checkable

from flakeguard.core.models import LogEntry


@runtime_checkable
class LogStoragePort(Protocol):
    """Port for log storage operations.

    Adapters implementing this protocol can store and retrieve log entries.
    Examples: InMemoryLogStorage, RingBufferLogStorage, SQLiteLogStorage.
    """

    def write(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...

    def read(self) -> Iterable[LogEntry]:
        """Read all stored log entries in insertion order."""
        ...

    def clear(self) -> None:
        """Remove every stored entry."""
        ...

    def count(self) -> int:
        """Return the number of stored entries."""
        ...


@runtime_checkable
class AsyncLogStoragePort(Protocol):
    """Log storage that can also persist entries without blocking the loop.

    LogStore.append_async writes through ``write_async`` when its backend
    implements this protocol. Example: SQLiteLogStorage.
    """

    async def write_async(self, entry: LogEntry) -> None:
        """Write a log entry to storage."""
        ...


@runtime_checkable
class LocatorPort(Protocol):
    """The subset of a browser element handle used by ResilientPage.

    Playwright's async ``Locator`` satisfies this protocol.
    """

    def click(self, *, timeout: float | None = None) -> Awaitable[None]: ...

    def fill(self, value: str, *, timeout: float | None = None) -> Awaitable[None]: ...

    def input_value(self, *, timeout: float | None = None) -> Awaitable[str]: ...

    def wait_for(
        self, *, state: str | None = None, timeout: float | None = None
    ) -> Awaitable[None]: ...

    def is_visible(self) -> Awaitable[bool]: ...

    def is_enabled(self) -> Awaitable[bool]: ...

    def text_content(self, *, timeout: float | None = None) -> Awaitable[str | None]: ...


@runtime_checkable
class PagePort(Protocol):
    """The subset of a browser page used by ResilientPage.

    Playwright's async ``Page`` satisfies this protocol.
    """

    @property
    def url(self) -> str: ...

    def locator(self, selector: str) -> Any: ...

    def goto(self, url: str, **kwargs: Any) -> Awaitable[Any]: ...

    def screenshot(self, **kwargs: Any) -> Awaitable[bytes]: ...

    @property
    def viewport_size(self) -> Any: ...

    def title(self) -> Awaitable[str]: ...

    def evaluate(self, expression: str, arg: Any = None) -> Awaitable[Any]: ...

    def wait_for_load_state(self, state: str | None = None, **kwargs: Any) -> Awaitable[None]: ...
