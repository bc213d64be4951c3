"""Batch execution engine for aws-bulk."""

from aws_bulk.execution.batch import (
    BatchExecutor,
    BatchLogger,
    BatchProcessor,
    BatchProcessorOptions,
    BatchResult,
    CallbackBatchLogger,
    NullBatchLogger,
    ProcessResult,
    RandomSource,
    backoff_delay_ms,
    chunk,
)
from aws_bulk.execution.errors import ErrorHandler, is_retryable_error
from aws_bulk.execution.retry import retry_with_backoff

__all__ = [
    "BatchExecutor",
    "BatchLogger",
    "BatchProcessor",
    "BatchProcessorOptions",
    "BatchResult",
    "CallbackBatchLogger",
    "NullBatchLogger",
    "ProcessResult",
    "RandomSource",
    "backoff_delay_ms",
    "chunk",
    "ErrorHandler",
    "is_retryable_error",
    "retry_with_backoff",
]
