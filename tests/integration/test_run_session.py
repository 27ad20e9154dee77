"""Tests for RunSession lifecycle and artifact export."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from flakeguard.adapters.storage.sqlite_logs import SQLiteLogStorage
from flakeguard.config import FlakeguardSettings
from flakeguard.core.exceptions import ExportError
from flakeguard.core.log_store import ECHO_LOGGER_NAME
from flakeguard.core.models import LogLevel, RetryPolicy
from flakeguard.session import RunSession, recommendations

pytestmark = [
    pytest.mark.tier(2),
    pytest.mark.tra("Core.RunSession"),
]


@pytest.fixture
def settings(tmp_path: Path) -> FlakeguardSettings:
    return FlakeguardSettings(artifacts_dir=tmp_path / "results", base_delay=0.1, max_delay=1.0)


@pytest.fixture
def session(settings: FlakeguardSettings, sleep: Any, clock) -> RunSession:
    return RunSession(settings, sleep=sleep, clock=clock)


class TestLifecycle:
    def test_open_logs_start(self, session: RunSession) -> None:
        with session:
            assert session.is_open
            assert session.log_store.entries()[0].message == "Starting test run"
        assert not session.is_open

    def test_close_without_open_writes_nothing(
        self, session: RunSession, settings: FlakeguardSettings
    ) -> None:
        assert session.close() == {}
        assert not settings.artifacts_dir.exists()

    def test_log_store_uses_configured_level(self, tmp_path: Path) -> None:
        session = RunSession(FlakeguardSettings(artifacts_dir=tmp_path, log_level="error"))
        assert session.log_store.level is LogLevel.ERROR

    def test_log_db_selects_sqlite_storage(self, tmp_path: Path) -> None:
        db = str(tmp_path / "run.db")
        session = RunSession(FlakeguardSettings(artifacts_dir=tmp_path, log_db=db))

        assert isinstance(session.log_store.storage, SQLiteLogStorage)
        assert session.log_store.storage.db_path == db

    async def test_executor_uses_settings_policy_and_tag(
        self, session: RunSession, sleep: Any
    ) -> None:
        executor = session.executor(tag="test_login")

        assert executor.policy == RetryPolicy(base_delay=0.1, max_delay=1.0)
        assert executor.tag == "test_login"

        calls = 0

        async def flaky() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("not yet")
            return "ok"

        assert await executor.run(flaky) == "ok"
        assert sleep.delays == [0.1]
        assert [e.tag for e in session.log_store.query(level="warn")] == ["test_login"]

    def test_finish_records_performance(self, session: RunSession) -> None:
        context = session.context("test_a")
        context.add_step("open")

        session.finish(context)

        stats = session.performance.stats()
        assert stats.total_tests == 1
        assert stats.average_steps == 1

    def test_seed_data(self, session: RunSession) -> None:
        session.seed_data()
        assert session.data_store.keys() == ["setup_employee", "setup_user", "setup_leave"]


class TestArtifacts:
    def test_close_writes_artifacts_and_clears_stores(
        self, session: RunSession, settings: FlakeguardSettings
    ) -> None:
        session.open()
        session.data_store.store("user", {"username": "qa"})
        session.failures.record(RuntimeError("boom"), "test_a", step="click")

        written = session.close()

        root = settings.artifacts_dir
        assert written == {
            "data": root / "data" / "test-data-export.json",
            "report": root / "reports" / "performance-report.json",
            "error_report": root / "reports" / "error-report.md",
            "logs": root / "logs" / "test-execution-logs.json",
        }
        data = json.loads(written["data"].read_text())
        assert data["data"] == {"user": {"username": "qa"}}
        logs = json.loads(written["logs"].read_text())
        assert logs["logs"][0]["message"] == "Starting test run"
        assert "# Error Report" in written["error_report"].read_text()

        assert len(session.log_store) == 0
        assert len(session.data_store) == 0
        assert session.failures.stats().total == 0

    def test_error_report_skipped_without_failures(self, session: RunSession) -> None:
        session.open()
        assert "error_report" not in session.close()

    def test_report_shape(self, session: RunSession) -> None:
        session.open()
        session.log_store.error("bad")
        session.log_store.warn("meh")

        report = session.report()

        assert report["logs"] == {"total": 3, "errors": 1, "warnings": 1}
        assert report["testData"]["totalEntries"] == 0
        assert report["failures"] == {"total": 0, "byTest": {}}
        assert report["recommendations"] == []

    def test_export_failure_is_logged_not_raised(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        session = RunSession(FlakeguardSettings(artifacts_dir=blocker)).open()

        with caplog.at_level(logging.WARNING, logger=ECHO_LOGGER_NAME):
            written = session.close()

        assert written == {}
        assert not session.is_open
        warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
        assert warnings == [
            "Failed to export data",
            "Failed to export report",
            "Failed to export logs",
        ]

    def test_export_failure_raises_when_configured(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        session = RunSession(
            FlakeguardSettings(artifacts_dir=blocker, fail_on_export_error=True)
        ).open()
        session.data_store.store("k", 1)

        with pytest.raises(ExportError):
            session.close()

        assert session.data_store.get("k") == 1


class TestRecommendations:
    def test_quiet_run_has_none(self) -> None:
        assert recommendations(errors=10, warnings=20, total=1000) == []

    def test_thresholds(self) -> None:
        advice = recommendations(errors=11, warnings=21, total=1001)
        assert len(advice) == 3
        assert advice[0].startswith("Consider reviewing test stability")
