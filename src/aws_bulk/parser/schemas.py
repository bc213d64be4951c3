"""Pydantic models validating bulk command input."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from aws_bulk.execution.batch import BatchProcessorOptions

SQS_QUEUE_URL_PATTERN = r"^https?://[^/\s]+/\d{12}/[A-Za-z0-9_-]{1,80}(\.fifo)?$"
TABLE_NAME_PATTERN = r"^[a-zA-Z0-9._-]+$"
SQS_MAX_BATCH_ENTRIES = 10
DYNAMODB_MAX_BATCH_WRITE = 25
SQS_MAX_VISIBILITY_TIMEOUT = 43_200


class OutputFormat(str, Enum):
    """Output formats supported by the CLI."""

    TABLE = "table"
    JSON = "json"
    JSONL = "jsonl"


class BulkOperationInput(BaseModel):
    """Fields shared by every file-driven bulk command."""

    model_config = ConfigDict(frozen=True)

    input_file: str = Field(..., min_length=1, description="Input file path (JSON, JSONL, CSV or TSV)")
    batch_size: int = Field(SQS_MAX_BATCH_ENTRIES, ge=1, le=SQS_MAX_BATCH_ENTRIES)
    max_concurrency: int = Field(10, ge=1, le=20, description="Maximum concurrent batches")
    max_retries: int = Field(3, ge=0, le=10, description="Retries per batch after the first attempt")
    region: Optional[str] = Field(None, description="AWS region override")
    profile: Optional[str] = Field(None, description="AWS profile override")
    output_format: OutputFormat = Field(OutputFormat.TABLE)
    verbose: bool = Field(False)

    def to_options(self) -> BatchProcessorOptions:
        """Build engine options from the validated input."""
        return BatchProcessorOptions(
            max_retries=self.max_retries,
            batch_size=self.batch_size,
            max_concurrency=self.max_concurrency,
            verbose=self.verbose,
        )


class SQSSendMessageBatchInput(BulkOperationInput):
    """Input for sqs send-batch."""

    queue_url: str = Field(..., pattern=SQS_QUEUE_URL_PATTERN, description="Queue URL")


class SQSDeleteMessageBatchInput(BulkOperationInput):
    """Input for sqs delete-batch."""

    queue_url: str = Field(..., pattern=SQS_QUEUE_URL_PATTERN, description="Queue URL")


class SQSChangeVisibilityBatchInput(BulkOperationInput):
    """Input for sqs change-visibility-batch."""

    queue_url: str = Field(..., pattern=SQS_QUEUE_URL_PATTERN, description="Queue URL")
    visibility_timeout: Optional[int] = Field(
        None,
        ge=0,
        le=SQS_MAX_VISIBILITY_TIMEOUT,
        description="Timeout for records that do not carry their own VisibilityTimeout",
    )


class SQSReceiveMessageBatchInput(BaseModel):
    """Input for sqs receive-batch."""

    model_config = ConfigDict(frozen=True)

    queue_url: str = Field(..., pattern=SQS_QUEUE_URL_PATTERN, description="Queue URL")
    batch_size: int = Field(SQS_MAX_BATCH_ENTRIES, ge=1, le=SQS_MAX_BATCH_ENTRIES)
    max_batches: Optional[int] = Field(None, ge=1, description="Stop after this many receive calls")
    wait_time_seconds: int = Field(20, ge=0, le=20, description="Long polling wait time")
    visibility_timeout: Optional[int] = Field(None, ge=0, le=SQS_MAX_VISIBILITY_TIMEOUT)
    region: Optional[str] = Field(None)
    profile: Optional[str] = Field(None)
    output_format: OutputFormat = Field(OutputFormat.TABLE)
    verbose: bool = Field(False)


class DynamoDBBatchWriteInput(BulkOperationInput):
    """Input for dynamodb batch-write-item."""

    table_name: str = Field(..., min_length=3, max_length=255, pattern=TABLE_NAME_PATTERN)
    batch_size: int = Field(DYNAMODB_MAX_BATCH_WRITE, ge=1, le=DYNAMODB_MAX_BATCH_WRITE)
