"""Bridge from the standard library logging module into a LogStore.

Records emitted by application or library loggers while a test runs end up
in the run log next to the retry narration, tagged with the test name when
one is passed through ``extra``.
"""

import logging
import traceback

from flakeguard.core.log_store import ECHO_MARKER, LogStore
from flakeguard.core.models import LogLevel

ContextValue = str | int | float | bool

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "tag",
    ECHO_MARKER,
}

_DEFAULT_INCLUDE_ATTRS = ("logger", "funcName", "lineno")


def store_level(levelno: int) -> LogLevel:
    """Map a stdlib level number onto the four store levels."""
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


def _exception_fields(record: logging.LogRecord) -> dict[str, ContextValue]:
    if not record.exc_info:
        return {}
    exc_type, exc_value, exc_tb = record.exc_info
    fields: dict[str, ContextValue] = {}
    if exc_type is not None:
        fields["exc_type"] = exc_type.__name__
    if exc_value is not None:
        fields["exc_message"] = str(exc_value)
    if exc_tb is not None:
        fields["exc_traceback"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )
    return fields


class LogStoreHandler(logging.Handler):
    """Logging handler that appends records to a LogStore.

    Records the store echoes to its own logger are ignored, so the handler
    can sit on the root logger without feeding the store its own entries.

    Example:
        ```python
        from flakeguard import LogStore, LogStoreHandler

        store = LogStore()
        logging.getLogger().addHandler(LogStoreHandler(store))
        logging.getLogger("app").warning("slow response", extra={"tag": "test_login"})
        ```

    Args:
        log_store: Store receiving the converted records.
        include_attrs: Record attributes copied into the entry context, out of
            "logger", "funcName", "lineno" and "pathname". Defaults to the
            first three.
        level: Handler threshold, as for any logging.Handler.
    """

    def __init__(
        self,
        log_store: LogStore,
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._store = log_store
        self._include = tuple(_DEFAULT_INCLUDE_ATTRS if include_attrs is None else include_attrs)

    def emit(self, record: logging.LogRecord) -> None:
        if getattr(record, ECHO_MARKER, False):
            return
        try:
            self._store.append(
                store_level(record.levelno),
                record.getMessage(),
                self._context(record),
                getattr(record, "tag", None),
            )
        except Exception:
            self.handleError(record)

    def _context(self, record: logging.LogRecord) -> dict[str, ContextValue]:
        source: dict[str, ContextValue] = {
            "logger": record.name,
            "funcName": record.funcName or "",
            "lineno": record.lineno,
            "pathname": record.pathname,
        }
        context = {name: source[name] for name in self._include if name in source}
        # Only primitive extras survive; nested values are dropped.
        context.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and isinstance(value, ContextValue)
        )
        context.update(_exception_fields(record))
        return context
