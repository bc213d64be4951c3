"""Input parsing for aws-bulk commands."""

from aws_bulk.parser.input_files import InputFormat, detect_format, load_records, parse_records
from aws_bulk.parser.schemas import (
    BulkOperationInput,
    DynamoDBBatchWriteInput,
    OutputFormat,
    SQSChangeVisibilityBatchInput,
    SQSDeleteMessageBatchInput,
    SQSReceiveMessageBatchInput,
    SQSSendMessageBatchInput,
)

__all__ = [
    "InputFormat",
    "detect_format",
    "load_records",
    "parse_records",
    "BulkOperationInput",
    "DynamoDBBatchWriteInput",
    "OutputFormat",
    "SQSChangeVisibilityBatchInput",
    "SQSDeleteMessageBatchInput",
    "SQSReceiveMessageBatchInput",
    "SQSSendMessageBatchInput",
]
