"""Explicit lifecycle for the stores shared by a test run.

A RunSession is created once per test process, opened at suite start and
closed at suite end. Closing writes the run artifacts and clears the stores.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from flakeguard.adapters.storage.sqlite_logs import SQLiteLogStorage
from flakeguard.config import FlakeguardSettings
from flakeguard.core.context import RunContext
from flakeguard.core.data_store import DataStore
from flakeguard.core.encoding.export import write_document, write_text
from flakeguard.core.encoding.ndjson import format_timestamp
from flakeguard.core.exceptions import ExportError
from flakeguard.core.executor import AsyncSleep, ResilientExecutor
from flakeguard.core.failures import FailureRecorder, PerformanceMonitor
from flakeguard.core.generators import GenerationOptions, RecordKind
from flakeguard.core.log_store import LogStore
from flakeguard.core.models import LogLevel, RetryPolicy

logger = logging.getLogger(__name__)

LOGS_ARTIFACT = Path("logs") / "test-execution-logs.json"
DATA_ARTIFACT = Path("data") / "test-data-export.json"
REPORT_ARTIFACT = Path("reports") / "performance-report.json"
ERROR_REPORT_ARTIFACT = Path("reports") / "error-report.md"

# Thresholds above which the run report suggests a closer look.
MAX_ERRORS = 10
MAX_WARNINGS = 20
MAX_LOGS = 1000


def recommendations(errors: int, warnings: int, total: int) -> list[str]:
    """Suggest follow-ups for a noisy run."""
    advice = []
    if errors > MAX_ERRORS:
        advice.append("Consider reviewing test stability - high error count detected")
    if warnings > MAX_WARNINGS:
        advice.append(
            "Consider optimizing test data and assertions - high warning count detected"
        )
    if total > MAX_LOGS:
        advice.append("Consider reducing log verbosity for better performance")
    return advice


class RunSession:
    """Owns the log store, data store and failure records of one run.

    Example:
        ```python
        with RunSession(FlakeguardSettings(artifacts_dir=tmp_path)) as session:
            executor = session.executor(tag="test_login")
            ...
        # artifacts written under tmp_path, stores cleared
        ```

    Args:
        settings: Run configuration; read from the environment when omitted.
        log_store: Pre-built log store; otherwise one is built from settings.
        data_store: Pre-built data store.
        sleep: Sleep injected into every executor handed out.
        clock: Unix-seconds clock for report stamps.
    """

    def __init__(
        self,
        settings: FlakeguardSettings | None = None,
        log_store: LogStore | None = None,
        data_store: DataStore | None = None,
        sleep: AsyncSleep = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or FlakeguardSettings()
        if log_store is None:
            storage = SQLiteLogStorage(self.settings.log_db) if self.settings.log_db else None
            log_store = LogStore(storage, level=self.settings.log_level, clock=clock)
        self.log_store = log_store
        self.data_store = data_store or DataStore(clock=clock)
        self.failures = FailureRecorder(self.log_store, clock=clock)
        self.performance = PerformanceMonitor(clock=clock)
        self._sleep = sleep
        self._clock = clock
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def artifacts_dir(self) -> Path:
        return Path(self.settings.artifacts_dir)

    def open(self) -> "RunSession":
        if self._is_open:
            return self
        self._is_open = True
        self.log_store.info(
            "Starting test run",
            {"artifacts_dir": str(self.artifacts_dir), "base_url": self.settings.base_url},
        )
        return self

    def seed_data(self, prefix: str = "Setup") -> None:
        """Store one generated employee, user and leave record for the run."""
        options = GenerationOptions(prefix=prefix)
        for kind in (RecordKind.EMPLOYEE, RecordKind.USER, RecordKind.LEAVE):
            self.data_store.generate_and_store(kind, key=f"setup_{kind.value}", options=options)
        self.log_store.info("Test data initialized", {"keys": self.data_store.keys()})

    def executor(self, tag: str | None = None, policy: RetryPolicy | None = None) -> ResilientExecutor:
        """Build an executor that logs into this session under tag."""
        return ResilientExecutor(
            self.log_store,
            policy=policy or self.settings.retry_policy(),
            sleep=self._sleep,
            tag=tag,
        )

    def context(self, test_name: str) -> RunContext:
        return RunContext(test_name, self.log_store)

    def finish(self, context: RunContext) -> float:
        """Complete a test context and record its performance."""
        duration = context.complete()
        self.performance.record(context.test_name, duration, len(context.steps))
        return duration

    def report(self) -> dict[str, Any]:
        """Summarize the run: data, log counts, failures and performance."""
        log_summary = self.log_store.summary()
        errors = log_summary.by_level.get(LogLevel.ERROR.label, 0)
        warnings = log_summary.by_level.get(LogLevel.WARN.label, 0)
        failure_stats = self.failures.stats()
        perf = self.performance.stats()
        return {
            "timestamp": format_timestamp(self._clock()),
            "testData": self.data_store.summarize().to_dict(),
            "logs": {"total": log_summary.total, "errors": errors, "warnings": warnings},
            "failures": {"total": failure_stats.total, "byTest": failure_stats.by_test},
            "performance": {
                "totalTests": perf.total_tests,
                "averageDuration": perf.average_duration,
                "slowestTest": perf.slowest_test,
                "fastestTest": perf.fastest_test,
                "averageSteps": perf.average_steps,
            },
            "recommendations": recommendations(errors, warnings, log_summary.total),
        }

    def close(self) -> dict[str, Path]:
        """Write artifacts, then clear every store.

        Export failures are logged as warnings and skipped unless
        ``fail_on_export_error`` is set, in which case the ExportError
        propagates and the stores are left intact for inspection.

        Returns:
            Artifact name to written path, for the artifacts that succeeded.
        """
        if not self._is_open:
            return {}
        root = self.artifacts_dir
        written: dict[str, Path] = {}
        self.log_store.info("Exporting test artifacts", {"artifacts_dir": str(root)})
        self._export(written, "data", lambda: self.data_store.export(root / DATA_ARTIFACT))
        self._export(
            written, "report", lambda: write_document(root / REPORT_ARTIFACT, self.report())
        )
        if self.failures.records:
            self._export(
                written,
                "error_report",
                lambda: write_text(root / ERROR_REPORT_ARTIFACT, self.failures.report()),
            )
        self._export(written, "logs", lambda: self.log_store.export(root / LOGS_ARTIFACT))

        self.data_store.clear()
        self.log_store.clear()
        self.failures.clear()
        self.performance.clear()
        storage = self.log_store.storage
        if isinstance(storage, SQLiteLogStorage):
            storage.close_sync()
        self._is_open = False
        logger.debug("Run session closed, wrote %d artifacts", len(written))
        return written

    def _export(self, written: dict[str, Path], name: str, export: Callable[[], Path]) -> None:
        try:
            written[name] = export()
        except ExportError as exc:
            if self.settings.fail_on_export_error:
                raise
            self.log_store.warn(f"Failed to export {name}", {"error": str(exc)})

    def __enter__(self) -> "RunSession":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
