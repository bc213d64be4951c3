"""Bulk operations: per-resource executors driven by the batch engine."""

from aws_bulk.operations.dynamodb import batch_write_items
from aws_bulk.operations.sqs import (
    change_visibility,
    delete_messages,
    receive_messages,
    send_messages,
)

__all__ = [
    "batch_write_items",
    "change_visibility",
    "delete_messages",
    "receive_messages",
    "send_messages",
]
