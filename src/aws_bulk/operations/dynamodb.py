"""DynamoDB bulk write built on the batch engine."""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Sequence

import structlog

from aws_bulk.core.exceptions import ValidationError
from aws_bulk.execution.batch import BatchProcessor, BatchProcessorOptions, BatchResult, ProcessResult
from aws_bulk.parser.schemas import DYNAMODB_MAX_BATCH_WRITE
from aws_bulk.services.dynamodb import DynamoDBService, to_attribute_map

logger = structlog.get_logger()

Record = dict[str, Any]


def _canonical(attribute_map: dict[str, Any]) -> str:
    return json.dumps(attribute_map, sort_keys=True, default=str)


def split_unprocessed(
    batch: Sequence[Record],
    requests: Sequence[dict[str, Any]],
    unprocessed_requests: Sequence[dict[str, Any]],
) -> tuple[list[Record], list[Record]]:
    """
    Match ``UnprocessedItems`` back to the records they came from.

    DynamoDB returns unprocessed put requests verbatim, so records are
    matched on their serialized attribute map. Duplicates are counted so
    two identical records are never both claimed by one unprocessed entry.
    """
    pending = Counter(
        _canonical(request["PutRequest"]["Item"])
        for request in unprocessed_requests
        if "PutRequest" in request
    )
    processed: list[Record] = []
    unprocessed: list[Record] = []
    for record, request in zip(batch, requests):
        key = _canonical(request["PutRequest"]["Item"])
        if pending[key] > 0:
            pending[key] -= 1
            unprocessed.append(record)
        else:
            processed.append(record)
    return processed, unprocessed


async def batch_write_items(
    table_name: str,
    items: Sequence[Record],
    processor: BatchProcessor | None = None,
    service: DynamoDBService | None = None,
) -> ProcessResult[Record, Record]:
    """
    Put items into a table in batches of up to 25.

    Args:
        table_name: Target table
        items: Plain JSON records; numbers are stored as DynamoDB numbers
        processor: Batch engine (defaults to batches of 25)
        service: DynamoDB service wrapper

    Returns:
        ProcessResult with written items in ``processed``
    """
    processor = processor or BatchProcessor(BatchProcessorOptions(batch_size=DYNAMODB_MAX_BATCH_WRITE))
    service = service or DynamoDBService()

    if processor.options.batch_size > DYNAMODB_MAX_BATCH_WRITE:
        raise ValidationError(
            f"DynamoDB batch writes accept at most {DYNAMODB_MAX_BATCH_WRITE} items",
            field="batch_size",
            expected=f"<= {DYNAMODB_MAX_BATCH_WRITE}",
            received=str(processor.options.batch_size),
        )
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item:
            raise ValidationError(
                f"Item {index} must be a non-empty object",
                field=f"items[{index}]",
                expected="object",
            )
    service.ensure_client()

    async def execute(batch: list[Record]) -> BatchResult[Record, Record]:
        requests = [{"PutRequest": {"Item": to_attribute_map(item)}} for item in batch]
        response = await service.batch_write_item({table_name: requests})
        unprocessed_requests = response.get("UnprocessedItems", {}).get(table_name, [])
        processed, unprocessed = split_unprocessed(batch, requests, unprocessed_requests)
        return BatchResult(processed=processed, unprocessed=unprocessed)

    result = await processor.process(list(items), execute)
    logger.info("dynamodb_batch_write_complete", table_name=table_name, **result.to_dict())
    return result
