"""flakeguard: retry, logging and test-data helpers for flaky browser suites."""

from flakeguard.adapters.logging import LogStoreHandler
from flakeguard.adapters.storage import RingBufferLogStorage, SQLiteLogStorage
from flakeguard.config import FlakeguardSettings
from flakeguard.core.backoff import compute_delay, delay_schedule
from flakeguard.core.context import RunContext
from flakeguard.core.data_store import DataStore
from flakeguard.core.exceptions import (
    DataImportError,
    ExportError,
    FlakeguardError,
    FormNotReadyError,
)
from flakeguard.core.executor import ResilientExecutor, retrying
from flakeguard.core.failures import FailureRecorder, PerformanceMonitor
from flakeguard.core.generators import GenerationOptions, RecordKind, ScenarioKind
from flakeguard.core.log_store import LogStore
from flakeguard.core.memory import InMemoryLogStorage
from flakeguard.core.models import (
    ExecutionResult,
    Failure,
    LogEntry,
    LogLevel,
    RetryPolicy,
    Success,
)
from flakeguard.session import RunSession

__all__ = [
    "DataImportError",
    "DataStore",
    "ExecutionResult",
    "ExportError",
    "Failure",
    "FailureRecorder",
    "FlakeguardError",
    "FlakeguardSettings",
    "FormNotReadyError",
    "GenerationOptions",
    "InMemoryLogStorage",
    "LogEntry",
    "LogLevel",
    "LogStore",
    "LogStoreHandler",
    "PerformanceMonitor",
    "RecordKind",
    "ResilientExecutor",
    "RetryPolicy",
    "RingBufferLogStorage",
    "RunContext",
    "RunSession",
    "SQLiteLogStorage",
    "ScenarioKind",
    "Success",
    "compute_delay",
    "delay_schedule",
    "retrying",
]
