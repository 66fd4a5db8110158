"""Retry utilities for vision model calls."""

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry with exponential backoff.

    ``max_attempts`` counts every call, including the first one.
    ``timeout_ms`` is checked after each call returns; a slow call is
    treated as failed but is never interrupted.
    """

    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0
    jitter_ms: int = 200
    timeout_ms: int | None = 30000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("retry delays must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if self.jitter_ms < 0:
            raise ValueError("jitter_ms must be >= 0")

    def base_delays_ms(self) -> list[float]:
        """Delays before each retry, without jitter."""
        delays: list[float] = []
        delay = float(min(self.initial_delay_ms, self.max_delay_ms))
        for _ in range(self.max_attempts - 1):
            delays.append(delay)
            delay = min(delay * self.backoff_multiplier, float(self.max_delay_ms))
        return delays


class AttemptTimeoutError(TimeoutError):
    """A call completed but took longer than the per-attempt limit."""

    def __init__(self, elapsed_ms: float, limit_ms: int) -> None:
        super().__init__(
            f"call took {elapsed_ms:.0f}ms, exceeding the {limit_ms}ms timeout"
        )
        self.elapsed_ms = elapsed_ms
        self.limit_ms = limit_ms


class RetryExhaustedError(Exception):
    """Every attempt failed. Wraps the last underlying failure."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"failed after {attempts} attempt(s): {last_error}")
        self.attempts = attempts
        self.last_error = last_error


async def with_retry[T](
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    operation_name: str = "model call",
) -> T:
    """Execute an async function with exponential backoff retry.

    Args:
        func: Async function to execute.
        policy: Retry policy.
        operation_name: Name for logging.

    Returns:
        Result of the function.

    Raises:
        RetryExhaustedError: If every attempt fails.
    """
    policy = policy or RetryPolicy()

    attempt = 0
    delay_ms = float(min(policy.initial_delay_ms, policy.max_delay_ms))

    while True:
        started = time.monotonic()
        try:
            result = await func()
            elapsed_ms = (time.monotonic() - started) * 1000
            if policy.timeout_ms is not None and elapsed_ms > policy.timeout_ms:
                raise AttemptTimeoutError(elapsed_ms, policy.timeout_ms)
            return result
        except Exception as e:
            attempt += 1

            if attempt >= policy.max_attempts:
                logger.warning(
                    "retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": attempt,
                        "error.message": str(e),
                        "error.type": type(e).__name__,
                    },
                )
                raise RetryExhaustedError(attempt, e) from e

            sleep_ms = delay_ms + random.uniform(0, policy.jitter_ms)

            logger.info(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": policy.max_attempts,
                    "retry_delay_s": round(sleep_ms / 1000, 2),
                    "error.message": str(e),
                    "error.type": type(e).__name__,
                },
            )

            await asyncio.sleep(sleep_ms / 1000)
            delay_ms = min(delay_ms * policy.backoff_multiplier, policy.max_delay_ms)
