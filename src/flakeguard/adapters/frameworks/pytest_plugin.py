"""pytest plugin exposing a run session and its stores as fixtures.

Registered through the ``pytest11`` entry point, so installing flakeguard
is enough to make the fixtures available:

    async def test_login(resilient_executor, run_context):
        with run_context.timed_step("submit"):
            await resilient_executor.run(submit_login)

The session is opened lazily by the first test that asks for it and closed
at the end of the run, which writes the artifacts.
"""

from collections.abc import Iterator
from typing import Any

import pytest

from flakeguard.config import FlakeguardSettings
from flakeguard.core.context import RunContext
from flakeguard.core.data_store import DataStore
from flakeguard.core.executor import ResilientExecutor
from flakeguard.core.log_store import LogStore
from flakeguard.session import RunSession

call_error_key = pytest.StashKey[BaseException]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("flakeguard", "flaky test hardening")
    group.addoption(
        "--flakeguard-artifacts",
        dest="flakeguard_artifacts",
        default=None,
        help="Directory for exported logs, data and reports (default: test-results).",
    )
    group.addoption(
        "--flakeguard-log-level",
        dest="flakeguard_log_level",
        default=None,
        choices=["debug", "info", "warn", "error"],
        help="Minimum level kept in the run log store.",
    )


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Iterator[Any]:
    report = yield
    if report.when == "call" and report.failed and call.excinfo is not None:
        item.stash[call_error_key] = call.excinfo.value
    return report


@pytest.fixture(scope="session")
def flakeguard_settings(pytestconfig: pytest.Config) -> FlakeguardSettings:
    """Settings from the environment, overridden by command line options."""
    overrides: dict[str, Any] = {}
    artifacts = pytestconfig.getoption("flakeguard_artifacts")
    if artifacts is not None:
        overrides["artifacts_dir"] = artifacts
    level = pytestconfig.getoption("flakeguard_log_level")
    if level is not None:
        overrides["log_level"] = level
    return FlakeguardSettings(**overrides)


@pytest.fixture(scope="session")
def flakeguard_session(flakeguard_settings: FlakeguardSettings) -> Iterator[RunSession]:
    session = RunSession(flakeguard_settings).open()
    yield session
    session.close()


@pytest.fixture
def log_store(flakeguard_session: RunSession) -> LogStore:
    return flakeguard_session.log_store


@pytest.fixture
def data_store(flakeguard_session: RunSession) -> DataStore:
    return flakeguard_session.data_store


@pytest.fixture
def resilient_executor(
    flakeguard_session: RunSession, request: pytest.FixtureRequest
) -> ResilientExecutor:
    """Executor tagged with the current test's name."""
    return flakeguard_session.executor(tag=request.node.name)


@pytest.fixture
def run_context(
    flakeguard_session: RunSession, request: pytest.FixtureRequest
) -> Iterator[RunContext]:
    """Step tracker for the current test.

    On teardown the test's duration is recorded, and a failure of the test
    body is added to the session's failure records.
    """
    context = flakeguard_session.context(request.node.name)
    yield context
    error = request.node.stash.get(call_error_key, None)
    if error is not None:
        open_steps = [s.step for s in context.steps if s.duration is None]
        flakeguard_session.failures.record(
            error, context.test_name, step=open_steps[-1] if open_steps else None
        )
    flakeguard_session.finish(context)
