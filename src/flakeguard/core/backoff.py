"""Deterministic exponential backoff."""

from collections.abc import Iterator

from flakeguard.core.models import RetryPolicy


def compute_delay(attempt: int, policy: RetryPolicy) -> float:
    """Return the delay to wait after failed attempt ``attempt``.

    ``delay = min(base_delay * multiplier ** (attempt - 1), max_delay)``

    Args:
        attempt: 1-based index of the attempt that just failed.
        policy: Retry configuration.

    Returns:
        Delay in seconds, never greater than ``policy.max_delay``.

    Raises:
        ValueError: If attempt is lower than 1.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    # Cap the exponent growth before it overflows a float.
    delay = policy.base_delay
    for _ in range(attempt - 1):
        if delay >= policy.max_delay:
            break
        delay *= policy.multiplier
    return min(delay, policy.max_delay)


def delay_schedule(policy: RetryPolicy) -> Iterator[float]:
    """Yield the delays slept between consecutive attempts of a policy."""
    for attempt in range(1, policy.max_attempts):
        yield compute_delay(attempt, policy)
