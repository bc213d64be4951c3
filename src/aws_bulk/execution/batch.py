"""Generic batch execution engine.

Splits a list of items into fixed-size batches, runs each batch through a
caller-supplied async executor, and retries whatever the executor reports
as unprocessed with exponential backoff and jitter. Batches are dispatched
through a block-wise concurrency window: up to ``max_concurrency`` batches
are launched, then the whole window drains before the next one opens.

The engine never inspects items and never raises for item failures. Items
still unprocessed after ``max_retries`` retries come back in
``ProcessResult.failed`` and the caller decides what to do with them.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Protocol, Sequence, TypeVar

import structlog

from aws_bulk.core.exceptions import ValidationError

logger = structlog.get_logger()

T = TypeVar("T")
R = TypeVar("R")

BASE_DELAY_MS = 1000
MAX_JITTER_MS = 1000
MAX_DELAY_MS = 30_000


def _require_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an integer",
            field=name,
            expected="integer",
            received=repr(value),
        )
    if value < minimum:
        raise ValidationError(
            f"{name} must be at least {minimum}",
            field=name,
            expected=f">= {minimum}",
            received=str(value),
        )


@dataclass(frozen=True)
class BatchProcessorOptions:
    """Configuration for one batch processor."""

    max_retries: int = 3
    batch_size: int = 10
    max_concurrency: int = 10
    verbose: bool = False

    def __post_init__(self) -> None:
        _require_int("max_retries", self.max_retries, minimum=0)
        _require_int("batch_size", self.batch_size, minimum=1)
        _require_int("max_concurrency", self.max_concurrency, minimum=1)


@dataclass
class BatchResult(Generic[T, R]):
    """Outcome of one executor call."""

    processed: list[R] = field(default_factory=list)
    unprocessed: list[T] = field(default_factory=list)


@dataclass
class ProcessResult(Generic[T, R]):
    """Aggregated outcome of a whole ``process`` call."""

    processed: list[R] = field(default_factory=list)
    failed: list[T] = field(default_factory=list)
    total_batches: int = 0

    @property
    def succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        """Summary counts for reporting."""
        return {
            "processed": len(self.processed),
            "failed": len(self.failed),
            "total_batches": self.total_batches,
        }


BatchExecutor = Callable[[list[T]], Awaitable[BatchResult[T, R]]]
SleepFunction = Callable[[float], Awaitable[None]]


class BatchLogger(Protocol):
    """Receives human-readable progress messages.

    ``log`` must not raise: an exception escapes the batch task and aborts
    ``process()``.
    """

    def log(self, message: str) -> None: ...


class RandomSource(Protocol):
    """Source of uniform floats in [0, 1) used for backoff jitter."""

    def random(self) -> float: ...


class NullBatchLogger:
    """Discards every message."""

    def log(self, message: str) -> None:
        return None


class CallbackBatchLogger:
    """Forwards messages to a plain callable such as ``print``."""

    def __init__(self, callback: Callable[[str], Any]) -> None:
        self._callback = callback

    def log(self, message: str) -> None:
        self._callback(message)


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    """Split ``items`` into consecutive lists of at most ``size`` items."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def backoff_delay_ms(retry_count: int, rng: RandomSource) -> float:
    """Delay before retry ``retry_count`` (1-indexed), in milliseconds."""
    return min(BASE_DELAY_MS * 2**retry_count + rng.random() * MAX_JITTER_MS, MAX_DELAY_MS)


@dataclass
class _Attempt(Generic[T, R]):
    processed: list[R]
    unprocessed: list[T]
    error: BaseException | None = None


@dataclass
class _BatchOutcome(Generic[T, R]):
    processed: list[R]
    failed: list[T]


class BatchProcessor(Generic[T, R]):
    """Runs items through an executor in batches with retries.

    Example:
        processor = BatchProcessor(BatchProcessorOptions(batch_size=10))

        async def send(batch):
            response = await sqs.send_message_batch(queue_url, entries_for(batch))
            return BatchResult(processed=..., unprocessed=...)

        result = await processor.process(messages, send)
        if result.failed:
            ...
    """

    def __init__(
        self,
        options: BatchProcessorOptions | None = None,
        logger: BatchLogger | None = None,
        rng: RandomSource | None = None,
        sleep: SleepFunction | None = None,
    ) -> None:
        self.options = options or BatchProcessorOptions()
        self._logger = logger or NullBatchLogger()
        self._rng = rng or random.Random()
        self._sleep = sleep or asyncio.sleep

    async def process(
        self,
        items: Sequence[T],
        executor: BatchExecutor[T, R],
    ) -> ProcessResult[T, R]:
        """
        Process items in batches with retry logic.

        Args:
            items: Items to process, in order
            executor: Async callable that attempts one batch

        Returns:
            ProcessResult with processed results, failed items and batch count
        """
        batches = chunk(items, self.options.batch_size)
        all_processed: list[R] = []
        all_failed: list[T] = []

        self._log(
            f"Processing {len(batches)} batches of up to {self.options.batch_size} items each..."
        )
        logger.debug(
            "batch_processing_started",
            items=len(items),
            batches=len(batches),
            batch_size=self.options.batch_size,
            max_concurrency=self.options.max_concurrency,
            max_retries=self.options.max_retries,
        )

        # Block-wise window: a freed slot is not refilled until the window drains.
        window: list[asyncio.Task[_BatchOutcome[T, R]]] = []
        try:
            for index, batch in enumerate(batches):
                window.append(
                    asyncio.create_task(
                        self._process_single_batch(batch, index + 1, len(batches), executor)
                    )
                )

                if len(window) >= self.options.max_concurrency or index == len(batches) - 1:
                    for completed in asyncio.as_completed(window):
                        outcome = await completed
                        all_processed.extend(outcome.processed)
                        all_failed.extend(outcome.failed)
                    window = []
        finally:
            for task in window:
                if not task.done():
                    task.cancel()

        logger.debug(
            "batch_processing_complete",
            processed=len(all_processed),
            failed=len(all_failed),
            batches=len(batches),
        )

        return ProcessResult(
            processed=all_processed,
            failed=all_failed,
            total_batches=len(batches),
        )

    async def _process_single_batch(
        self,
        batch: list[T],
        batch_number: int,
        total_batches: int,
        executor: BatchExecutor[T, R],
    ) -> _BatchOutcome[T, R]:
        """Run one batch until it is fully processed or its retries run out."""
        current_items = list(batch)
        retry_count = 0
        processed: list[R] = []

        while current_items and retry_count <= self.options.max_retries:
            attempt = await self._execute_attempt(current_items, executor)

            if attempt.error is None:
                processed.extend(attempt.processed)
                current_items = attempt.unprocessed
                self._log_progress(batch_number, total_batches, len(processed), len(batch))
            else:
                self._log_error(batch_number, total_batches, attempt.error)

            if not self._should_retry(len(current_items), retry_count):
                break

            retry_count += 1
            await self._wait_with_backoff(retry_count)

        self._log_final_result(batch_number, total_batches, len(current_items), retry_count)

        return _BatchOutcome(processed=processed, failed=current_items)

    async def _execute_attempt(
        self,
        items: list[T],
        executor: BatchExecutor[T, R],
    ) -> _Attempt[T, R]:
        """Call the executor once; an exception counts as nothing processed."""
        try:
            result = await executor(list(items))
            return _Attempt(
                processed=list(result.processed),
                unprocessed=list(result.unprocessed),
            )
        except Exception as e:
            return _Attempt(processed=[], unprocessed=items, error=e)

    def _should_retry(self, remaining_items: int, retry_count: int) -> bool:
        return remaining_items > 0 and retry_count < self.options.max_retries

    async def _wait_with_backoff(self, retry_count: int) -> None:
        delay_ms = backoff_delay_ms(retry_count, self._rng)
        await self._sleep(delay_ms / 1000)

    def _log_progress(
        self,
        batch_number: int,
        total_batches: int,
        processed_count: int,
        total_count: int,
    ) -> None:
        if self.options.verbose:
            self._log(
                f"Batch {batch_number}/{total_batches}: Processed {processed_count}/{total_count} items"
            )

    def _log_error(self, batch_number: int, total_batches: int, error: BaseException) -> None:
        if self.options.verbose:
            self._log(f"Batch {batch_number}/{total_batches} failed: {error}")

    def _log_final_result(
        self,
        batch_number: int,
        total_batches: int,
        failed_count: int,
        retry_count: int,
    ) -> None:
        if failed_count > 0 and self.options.verbose:
            self._log(
                f"Batch {batch_number}/{total_batches}: {failed_count} items failed after {retry_count} retries"
            )

    def _log(self, message: str) -> None:
        self._logger.log(message)
