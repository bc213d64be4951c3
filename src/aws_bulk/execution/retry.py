"""Per-call retry with exponential backoff and full jitter.

Wraps a single AWS API call. This sits below the batch engine: a batch
call that is throttled is retried here a few times with short delays, and
only a call that still fails is reported to the engine as a failed
attempt.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

from aws_bulk.core.exceptions import ValidationError
from aws_bulk.execution.batch import SleepFunction
from aws_bulk.execution.errors import get_error_code, is_retryable_error

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 100
DEFAULT_MAX_DELAY_MS = 20_000

ShouldRetry = Callable[[BaseException], bool]
OnRetry = Callable[[BaseException, int, float], None]


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    should_retry: ShouldRetry | None = None,
    on_retry: OnRetry | None = None,
    sleep: SleepFunction | None = None,
) -> T:
    """
    Await ``fn()`` and retry it on retryable failures.

    The delay before retry ``n`` is drawn uniformly from
    ``[0, min(max_delay, base * 2**(n - 1))]``.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        max_attempts: Total attempts including the first
        base_delay_ms: Base of the exponential delay
        max_delay_ms: Cap on the exponential delay before jitter
        should_retry: Decides from the error whether to retry
        on_retry: Called with (error, 1-indexed attempt, delay_ms) before sleeping
        sleep: Async sleep taking seconds

    Returns:
        Whatever ``fn()`` returns on the first successful attempt

    Raises:
        The last error when it is not retryable or attempts are exhausted
    """
    if max_attempts < 1:
        raise ValidationError(
            "max_attempts must be at least 1",
            field="max_attempts",
            expected=">= 1",
            received=str(max_attempts),
        )

    def log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay_ms = retry_state.next_action.sleep * 1000
        logger.debug(
            "call_retry_scheduled",
            attempt=retry_state.attempt_number,
            delay_ms=round(delay_ms),
            error_code=get_error_code(error),
            error=str(error),
        )
        if on_retry:
            on_retry(error, retry_state.attempt_number, delay_ms)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_random_exponential(multiplier=base_delay_ms / 1000, max=max_delay_ms / 1000),
        retry=retry_if_exception(should_retry or is_retryable_error),
        before_sleep=log_retry,
        sleep=sleep or asyncio.sleep,
        reraise=True,
    )
    return await retrying(fn)
