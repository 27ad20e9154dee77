"""Bounded retry with exponential backoff for fallible actions.

Usage:
    executor = ResilientExecutor(log_store)
    text = await executor.run(lambda: page.locator("h6").inner_text(), tag="test_login")

Attempts are strictly sequential and counted from 1. Only exceptions raised by
the action itself (and matching ``retry_on``) are retried; anything raised
while logging or sleeping propagates immediately.
"""

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

from flakeguard.core.backoff import compute_delay
from flakeguard.core.log_store import LogStore
from flakeguard.core.models import ExecutionResult, Failure, LogLevel, RetryPolicy, Success

T = TypeVar("T")
P = ParamSpec("P")

AsyncSleep = Callable[[float], Awaitable[Any]]
SyncSleep = Callable[[float], Any]


class ResilientExecutor:
    """Runs actions under a RetryPolicy, logging every failed attempt.

    Args:
        log_store: Where attempt failures and exhaustion are recorded.
        policy: Default policy for calls that don't pass their own.
        sleep: Awaitable sleep between attempts; inject a fake in tests.
        sync_sleep: Blocking sleep used by ``run_sync``.
        retry_on: Exception types that count as a failed attempt.
        tag: Tag used for calls that don't pass their own, usually a test name.
    """

    def __init__(
        self,
        log_store: LogStore,
        policy: RetryPolicy | None = None,
        sleep: AsyncSleep = asyncio.sleep,
        sync_sleep: SyncSleep = time.sleep,
        retry_on: tuple[type[Exception], ...] = (Exception,),
        tag: str | None = None,
    ) -> None:
        self._log = log_store
        self._policy = policy or RetryPolicy()
        self._sleep = sleep
        self._sync_sleep = sync_sleep
        self._retry_on = retry_on
        self._tag = tag

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    @property
    def log_store(self) -> LogStore:
        return self._log

    @property
    def tag(self) -> str | None:
        return self._tag

    async def execute(
        self,
        action: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        tag: str | None = None,
        description: str = "action",
    ) -> ExecutionResult[T]:
        """Run action until it succeeds or the policy is exhausted.

        Entries are written with ``LogStore.append_async``, so a backend that
        persists asynchronously does not block the event loop.

        Returns:
            Success with the value, or Failure with the last error.
        """
        policy = policy or self._policy
        tag = tag if tag is not None else self._tag
        await self._log.append_async(*_started(description, policy), tag)
        attempt = 1
        while True:
            try:
                value = await action()
            except self._retry_on as exc:
                error = exc
            else:
                await self._log.append_async(*_succeeded(description, attempt), tag)
                return Success(value=value, attempts=attempt)

            await self._log.append_async(
                *_attempt_failed(description, attempt, policy, error), tag
            )
            if attempt == policy.max_attempts:
                await self._log.append_async(*_exhausted(description, policy, error), tag)
                return Failure(error=error, attempts=attempt)
            delay = compute_delay(attempt, policy)
            await self._log.append_async(*_retrying(description, attempt, delay), tag)
            await self._sleep(delay)
            attempt += 1

    async def run(
        self,
        action: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
        tag: str | None = None,
        description: str = "action",
    ) -> T:
        """Run action with retries and return its value.

        Raises:
            Exception: The last attempt's error, annotated with the attempt count.
        """
        result = await self.execute(action, policy, tag, description)
        return _unwrap(result, description)

    def execute_sync(
        self,
        action: Callable[[], T],
        policy: RetryPolicy | None = None,
        tag: str | None = None,
        description: str = "action",
    ) -> ExecutionResult[T]:
        """Blocking counterpart of ``execute`` for synchronous callables."""
        policy = policy or self._policy
        tag = tag if tag is not None else self._tag
        self._log.append(*_started(description, policy), tag)
        attempt = 1
        while True:
            try:
                value = action()
            except self._retry_on as exc:
                error = exc
            else:
                self._log.append(*_succeeded(description, attempt), tag)
                return Success(value=value, attempts=attempt)

            self._log.append(*_attempt_failed(description, attempt, policy, error), tag)
            if attempt == policy.max_attempts:
                self._log.append(*_exhausted(description, policy, error), tag)
                return Failure(error=error, attempts=attempt)
            delay = compute_delay(attempt, policy)
            self._log.append(*_retrying(description, attempt, delay), tag)
            self._sync_sleep(delay)
            attempt += 1

    def run_sync(
        self,
        action: Callable[[], T],
        policy: RetryPolicy | None = None,
        tag: str | None = None,
        description: str = "action",
    ) -> T:
        """Blocking counterpart of ``run`` for synchronous callables."""
        return _unwrap(self.execute_sync(action, policy, tag, description), description)


# Log lines of one call, as (level, message, context).
Event = tuple[LogLevel, str, dict[str, Any]]


def _started(description: str, policy: RetryPolicy) -> Event:
    return (
        LogLevel.DEBUG,
        f"Performing {description} with retry",
        {"max_attempts": policy.max_attempts, "base_delay": policy.base_delay},
    )


def _succeeded(description: str, attempt: int) -> Event:
    return LogLevel.DEBUG, f"{description} succeeded", {"attempt": attempt}


def _attempt_failed(
    description: str, attempt: int, policy: RetryPolicy, error: Exception
) -> Event:
    return (
        LogLevel.WARN,
        f"{description} attempt {attempt} failed",
        {"attempt": attempt, "max_attempts": policy.max_attempts, "error": repr(error)},
    )


def _retrying(description: str, attempt: int, delay: float) -> Event:
    return (
        LogLevel.DEBUG,
        f"Retrying {description} in {delay:.3f}s",
        {"attempt": attempt, "delay": delay},
    )


def _exhausted(description: str, policy: RetryPolicy, error: Exception) -> Event:
    return (
        LogLevel.ERROR,
        f"{description} failed after {policy.max_attempts} attempts",
        {"attempts": policy.max_attempts, "error": repr(error)},
    )


def _unwrap(result: ExecutionResult[T], description: str) -> T:
    if isinstance(result, Success):
        return result.value
    result.error.add_note(f"{description} failed after {result.attempts} attempts")
    raise result.error


def retrying(
    executor: ResilientExecutor,
    policy: RetryPolicy | None = None,
    tag: str | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorator that runs an async function through ``executor``.

    Example:
        @retrying(executor, RetryPolicy(max_attempts=5, base_delay=0.5))
        async def open_dashboard() -> None:
            await page.get_by_role("link", name="Dashboard").click()
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await executor.run(
                lambda: func(*args, **kwargs),
                policy=policy,
                tag=tag,
                description=func.__name__,
            )

        return wrapper

    return decorator
