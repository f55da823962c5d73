"""Generic async retry with exponential backoff.

``RetryPolicy`` is plain data; ``retry_async`` applies it to any zero-arg
coroutine factory. Nothing here knows about Discord.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _never_fatal(exc: BaseException) -> bool:
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try, how long to wait, and which errors end it early.

    Only exceptions matching ``retry_on`` are retried. Among those,
    ``is_fatal`` picks out the ones that can never succeed on a second try.
    Anything else propagates on the spot.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    is_fatal: Callable[[BaseException], bool] = field(default=_never_fatal)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.multiplier < 1:
            raise ValueError("base_delay must be >= 0 and multiplier >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after the given failed attempt (1-based)."""
        return self.base_delay * self.multiplier ** (attempt - 1)

    def delays(self) -> list[float]:
        """Every delay that may be slept, in order."""
        return [self.delay_for(n) for n in range(1, self.max_attempts)]


class RetryExhausted(Exception):
    """All attempts failed with retryable errors. ``__cause__`` is the last one."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_error!r}")
        self.attempts = attempts
        self.last_error = last_error


class FatalRetryError(Exception):
    """An attempt failed with an error the policy marks as fatal."""

    def __init__(self, attempt: int, error: BaseException) -> None:
        super().__init__(f"fatal error on attempt {attempt}: {error!r}")
        self.attempt = attempt
        self.error = error


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    label: str = "operation",
) -> T:
    """Run *operation* under *policy*.

    Raises FatalRetryError on a fatal error (no further attempts) and
    RetryExhausted once ``max_attempts`` retryable failures have occurred.
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except policy.retry_on as exc:
            if policy.is_fatal(exc):
                raise FatalRetryError(attempt, exc) from exc
            if attempt >= policy.max_attempts:
                raise RetryExhausted(attempt, exc) from exc
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s_retry attempt=%d/%d delay=%.2fs err=%r",
                label,
                attempt,
                policy.max_attempts,
                delay,
                exc,
            )
            await sleep(delay)
    raise AssertionError("unreachable")  # pragma: no cover
