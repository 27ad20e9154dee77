"""Retrying wrapper around a Playwright-style async page.

Every interaction runs through a ResilientExecutor. When an interaction
exhausts its attempts the page captures a screenshot, records the failure
and re-raises the last error with the screenshot path attached as a note.
"""

import asyncio
import logging
import re
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from flakeguard.core.exceptions import FormNotReadyError
from flakeguard.core.executor import AsyncSleep, ResilientExecutor
from flakeguard.core.failures import FailureRecorder
from flakeguard.core.models import Failure, LogLevel
from flakeguard.core.ports import PagePort

if TYPE_CHECKING:
    from playwright.async_api import Page

logger = logging.getLogger(__name__)

# Playwright timeouts, in milliseconds.
DEFAULT_TIMEOUT_MS = 5000
NAVIGATION_TIMEOUT_MS = 15000
NETWORK_IDLE_TIMEOUT_MS = 10000
POLL_INTERVAL = 0.1

_UNSAFE_FILENAME = re.compile(r"[^A-Za-z0-9_-]+")


def _slug(text: str) -> str:
    return _UNSAFE_FILENAME.sub("-", text).strip("-").lower() or "step"


def _collapse(text: str) -> str:
    return " ".join(text.split())


class ResilientPage:
    """Page helper whose clicks, fills, waits and assertions are retried with backoff.

    Example:
        ```python
        page = ResilientPage(
            playwright_page,
            session.executor(tag="test_login"),
            session.failures,
            base_url=settings.base_url,
            artifacts_dir=settings.artifacts_dir,
            test_name="test_login",
        )
        await page.navigate("/web/index.php/auth/login")
        await page.fill("input[name=username]", "Admin")
        await page.click("button[type=submit]")
        ```

    Args:
        page: Object satisfying PagePort, typically ``playwright.async_api.Page``.
        executor: Executor used for every interaction.
        failures: Recorder for exhausted interactions; optional.
        base_url: Prefix for ``navigate`` paths.
        artifacts_dir: Root under which ``errors/`` screenshots are written.
        test_name: Tag for failure records and screenshot names.
        timeout_ms: Per-attempt Playwright timeout.
        screenshot_on_failure: Capture a screenshot when an interaction is exhausted.
        clock: Monotonic clock used by ``wait_for_form_ready``.
        sleep: Awaitable sleep used by ``wait_for_form_ready``.
    """

    def __init__(
        self,
        page: PagePort,
        executor: ResilientExecutor,
        failures: FailureRecorder | None = None,
        *,
        base_url: str = "",
        artifacts_dir: str | Path = "test-results",
        test_name: str | None = None,
        timeout_ms: float = DEFAULT_TIMEOUT_MS,
        screenshot_on_failure: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: AsyncSleep = asyncio.sleep,
    ) -> None:
        self.page = page
        self.executor = executor
        self.failures = failures
        self.base_url = base_url.rstrip("/")
        self.artifacts_dir = Path(artifacts_dir)
        self.test_name = test_name or executor.tag or "test"
        self.timeout_ms = timeout_ms
        self.screenshot_on_failure = screenshot_on_failure
        self._clock = clock
        self._sleep = sleep

    async def click(self, selector: str) -> None:
        locator = self.page.locator(selector)
        await self._interact(
            f"click {selector}", lambda: locator.click(timeout=self.timeout_ms)
        )

    async def fill(self, selector: str, value: str) -> None:
        """Fill a field and verify that it holds the value afterwards."""
        locator = self.page.locator(selector)

        async def fill_and_verify() -> None:
            await locator.fill(value, timeout=self.timeout_ms)
            actual = await locator.input_value(timeout=self.timeout_ms)
            if actual != value:
                raise AssertionError(f"{selector} holds {actual!r} after fill, expected {value!r}")

        await self._interact(f"fill {selector}", fill_and_verify)

    async def wait_for(self, selector: str, state: str = "visible") -> None:
        locator = self.page.locator(selector)
        await self._interact(
            f"wait for {selector} to be {state}",
            lambda: locator.wait_for(state=state, timeout=self.timeout_ms),
        )

    async def element_exists(self, selector: str, timeout_ms: float | None = None) -> bool:
        """Return whether selector becomes visible within timeout_ms.

        A single attempt; absence is an answer, not a failure.
        """
        locator = self.page.locator(selector)
        try:
            await locator.wait_for(
                state="visible",
                timeout=self.timeout_ms if timeout_ms is None else timeout_ms,
            )
        except Exception as exc:
            logger.debug("%s not visible: %r", selector, exc)
            return False
        return True

    async def navigate(self, path: str = "/") -> None:
        url = path if "://" in path else f"{self.base_url}/{path.lstrip('/')}"
        await self._interact(
            f"navigate to {url}",
            lambda: self.page.goto(
                url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS
            ),
        )

    async def wait_for_form_ready(self, selectors: Sequence[str], timeout: float = 10.0) -> None:
        """Poll until every selector is visible and enabled.

        Args:
            selectors: Form fields and buttons that must be usable.
            timeout: Seconds to keep polling.

        Raises:
            FormNotReadyError: Naming the fields still not ready at the deadline.
        """
        deadline = self._clock() + timeout
        while True:
            pending = [s for s in selectors if not await self._is_ready(s)]
            if not pending:
                return
            if self._clock() >= deadline:
                error = FormNotReadyError(
                    f"Form not ready after {timeout}s: {', '.join(pending)}"
                )
                await self._record(error, "wait for form ready")
                raise error
            await self._sleep(POLL_INTERVAL)

    async def assert_url_contains(self, pattern: str | re.Pattern[str]) -> None:
        """Assert the current URL contains pattern, retrying while it does not.

        A string matches as a substring; a compiled pattern is searched.
        """
        expected = pattern.pattern if isinstance(pattern, re.Pattern) else pattern

        async def check() -> None:
            url = self.page.url
            found = pattern.search(url) if isinstance(pattern, re.Pattern) else pattern in url
            if not found:
                raise AssertionError(
                    f'URL assertion failed. Expected pattern: "{expected}", Current URL: "{url}"'
                )

        await self._interact(f"assert URL contains {expected}", check)
        await self._log(LogLevel.INFO, f"Assertion passed: URL contains {expected}")

    async def assert_text(self, selector: str, expected: str) -> None:
        """Assert an element's text, with whitespace collapsed, equals expected."""
        locator = self.page.locator(selector)
        wanted = _collapse(expected)

        async def check() -> None:
            actual = _collapse(await locator.text_content(timeout=self.timeout_ms) or "")
            if actual != wanted:
                raise AssertionError(
                    f'Text assertion failed. Expected: "{wanted}", Actual: "{actual}"'
                )

        await self._interact(f"assert text of {selector}", check)
        await self._log(LogLevel.INFO, f"Assertion passed: {selector} has text {wanted!r}")

    async def wait_for_network_idle(self, timeout_ms: float = NETWORK_IDLE_TIMEOUT_MS) -> bool:
        """Wait for the network to go quiet; a timeout is logged, not raised.

        Returns:
            Whether the page reached the idle state in time.
        """
        try:
            await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)
        except Exception as exc:
            await self._log(
                LogLevel.WARN,
                f"Network idle timeout after {timeout_ms:g}ms",
                {"error": repr(exc)},
            )
            return False
        return True

    async def log_page_state(self) -> None:
        """Log the page's URL, title and viewport at info level."""
        try:
            url = self.page.url
            title = await self.page.title()
            viewport = self.page.viewport_size
        except Exception as exc:
            await self._log(LogLevel.WARN, "Failed to get page state", {"error": repr(exc)})
            return
        await self._log(
            LogLevel.INFO,
            f"Page State: {title}",
            {"url": url, "title": title, "viewport": viewport},
        )

    async def log_console_messages(self) -> None:
        """Log messages collected in ``window.consoleMessages``, if any."""
        try:
            messages = await self.page.evaluate("() => window.consoleMessages || []")
        except Exception as exc:
            await self._log(LogLevel.WARN, "Failed to get console messages", {"error": repr(exc)})
            return
        if messages:
            await self._log(
                LogLevel.DEBUG, f"Console Messages: {len(messages)} messages", messages
            )

    async def capture_failure(self, step: str) -> Path | None:
        """Save a full-page screenshot under ``errors/``.

        Returns:
            The screenshot path, or None if capturing failed.
        """
        stamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S-%f")
        path = self.artifacts_dir / "errors" / f"{_slug(self.test_name)}-{_slug(step)}-{stamp}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(path), full_page=True)
        except Exception as exc:
            await self._log(
                LogLevel.WARN, f"Failed to capture screenshot for {step}", {"error": repr(exc)}
            )
            return None
        return path

    async def _log(self, level: LogLevel, message: str, context: Any = None) -> None:
        await self.executor.log_store.append_async(level, message, context, self.test_name)

    async def _is_ready(self, selector: str) -> bool:
        locator = self.page.locator(selector)
        return await locator.is_visible() and await locator.is_enabled()

    async def _interact(self, description: str, action: Callable[[], Awaitable[Any]]) -> None:
        result = await self.executor.execute(action, tag=self.test_name, description=description)
        if isinstance(result, Failure):
            error = result.error
            error.add_note(f"{description} failed after {result.attempts} attempts")
            await self._record(error, description)
            raise error

    async def _record(self, error: Exception, step: str) -> None:
        screenshot = None
        if self.screenshot_on_failure:
            screenshot = await self.capture_failure(step)
        if screenshot is not None:
            error.add_note(f"screenshot: {screenshot}")
        if self.failures is not None:
            self.failures.record(
                error,
                self.test_name,
                step=step,
                screenshot=None if screenshot is None else str(screenshot),
            )


@asynccontextmanager
async def open_page(base_url: str, headless: bool = True) -> AsyncIterator["Page"]:
    """Launch Chromium and yield a fresh page bound to base_url.

    Requires the ``browser`` extra.
    """
    from playwright.async_api import async_playwright

    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless)
        try:
            context = await browser.new_context(base_url=base_url)
            yield await context.new_page()
        finally:
            await browser.close()
