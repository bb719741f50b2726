"""Retry strategy for generative-service calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from scriptcontinuity.config import get_logger
from scriptcontinuity.exceptions import AuthFailedError, RateLimitedError
from scriptcontinuity.llm.usage import UsageTracker

logger = get_logger(__name__)

T = TypeVar("T")


class RetryStrategy:
    """Classify failures and wait between attempts.

    * rate limited: wait ``backoff_base ** attempt`` seconds (attempt counted
      from 1), or the service's ``retry_after`` when that is longer
    * auth failure: never retried
    * anything else: retried once after ``fixed_delay`` seconds
    """

    def __init__(
        self,
        max_attempts: int = 3,
        fixed_delay: float = 2.0,
        backoff_base: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize retry strategy.

        Args:
            max_attempts: Total attempts, including the first one.
            fixed_delay: Delay in seconds before retrying a generic failure.
            backoff_base: Base of the exponential rate-limit backoff.
            sleep: Awaitable used to wait; ``asyncio.sleep`` by default.
        """
        self.max_attempts = max(1, max_attempts)
        self.fixed_delay = fixed_delay
        self.backoff_base = backoff_base
        self._sleep = sleep or asyncio.sleep

    def rate_limit_delay(self, attempt: int, retry_after: float | None) -> float:
        """Backoff before retrying a rate-limited attempt."""
        delay = float(self.backoff_base**attempt)
        if retry_after is not None and retry_after > delay:
            return float(retry_after)
        return delay

    def delay_for(
        self, error: Exception, attempt: int, generic_retries: int
    ) -> float | None:
        """Seconds to wait before the next attempt, or None to give up."""
        if attempt >= self.max_attempts:
            return None
        if isinstance(error, AuthFailedError):
            return None
        if isinstance(error, RateLimitedError):
            return self.rate_limit_delay(attempt, error.retry_after)
        if generic_retries >= 1:
            return None
        return self.fixed_delay

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        usage: UsageTracker | None = None,
        operation_name: str = "completion",
    ) -> T:
        """Run ``operation`` under the retry policy.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            usage: Tracker receiving every attempt's outcome.
            operation_name: Name used in log messages.

        Returns:
            Result of the first successful attempt.

        Raises:
            Exception: The last attempt's error once retries are exhausted, or
                the first non-retryable error.
        """
        generic_retries = 0
        attempt = 0
        while True:
            attempt += 1
            if usage:
                usage.record_call()
            try:
                result = await operation()
            except Exception as e:
                if usage:
                    usage.record_error(e)
                    if isinstance(e, RateLimitedError):
                        usage.record_rate_limit()

                delay = self.delay_for(e, attempt, generic_retries)
                if delay is None:
                    logger.warning(
                        f"{operation_name} failed, not retrying",
                        attempt=attempt,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    raise
                if not isinstance(e, RateLimitedError):
                    generic_retries += 1

                logger.warning(
                    f"Attempt {attempt}/{self.max_attempts} of {operation_name} "
                    f"failed, retrying in {delay:.2f}s",
                    error=str(e),
                    error_type=type(e).__name__,
                    retry_delay=delay,
                )
                await self._sleep(delay)
                continue

            if usage:
                usage.record_success()
            return result
