"""aws-bulk: bulk AWS operations with batching, bounded concurrency and retries."""

from aws_bulk.execution.batch import (
    BatchProcessor,
    BatchProcessorOptions,
    BatchResult,
    ProcessResult,
)

__version__ = "0.1.0"

__all__ = [
    "BatchProcessor",
    "BatchProcessorOptions",
    "BatchResult",
    "ProcessResult",
    "__version__",
]
