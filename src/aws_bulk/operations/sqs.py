"""SQS bulk operations built on the batch engine.

Each operation turns input records into batch request entries, maps the
``Successful`` / ``Failed`` lists of the response back onto the records by
entry id, and lets the engine retry whatever was not acknowledged.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Sequence

import structlog

from aws_bulk.core.exceptions import ValidationError
from aws_bulk.execution.batch import BatchProcessor, BatchResult, ProcessResult
from aws_bulk.parser.schemas import SQS_MAX_BATCH_ENTRIES, SQS_MAX_VISIBILITY_TIMEOUT
from aws_bulk.services.sqs import SQSService

logger = structlog.get_logger()

Record = dict[str, Any]

_SEND_OPTIONAL_FIELDS = (
    "DelaySeconds",
    "MessageAttributes",
    "MessageSystemAttributes",
    "MessageGroupId",
    "MessageDeduplicationId",
)


def entry_id(index: int) -> str:
    """Entry id for the record at ``index`` within one request."""
    return f"msg-{index}"


def split_batch_response(
    batch: Sequence[Record],
    response: dict[str, Any],
) -> tuple[list[tuple[Record, dict[str, Any]]], list[Record]]:
    """
    Match a batch response back to its records.

    Records whose entry id is in ``Successful`` are paired with their
    success entry; everything else (``Failed`` or missing) is unprocessed.
    """
    successful = {entry["Id"]: entry for entry in response.get("Successful", [])}
    processed: list[tuple[Record, dict[str, Any]]] = []
    unprocessed: list[Record] = []
    for index, record in enumerate(batch):
        success = successful.get(entry_id(index))
        if success is None:
            unprocessed.append(record)
        else:
            processed.append((record, success))
    return processed, unprocessed


def build_send_entry(record: Record, index: int) -> dict[str, Any]:
    """Build a SendMessageBatch entry; records without MessageBody are sent whole as JSON."""
    if "MessageBody" in record:
        body = record["MessageBody"]
        body = body if isinstance(body, str) else json.dumps(body, default=str)
    else:
        body = json.dumps(record, default=str)

    entry: dict[str, Any] = {"Id": entry_id(index), "MessageBody": body}
    for name in _SEND_OPTIONAL_FIELDS:
        if record.get(name) is not None:
            entry[name] = record[name]
    return entry


def build_delete_entry(record: Record, index: int) -> dict[str, Any]:
    return {"Id": entry_id(index), "ReceiptHandle": record["ReceiptHandle"]}


def resolve_visibility_timeout(record: Record, index: int, default_timeout: int | None) -> int:
    """
    Effective visibility timeout for a record, in seconds.

    The record's own ``VisibilityTimeout`` wins; a missing or null value
    falls back to ``default_timeout``. Integers and digit strings within
    the SQS range are accepted.
    """
    value = record.get("VisibilityTimeout")
    if value is None:
        value = default_timeout
    field_name = f"records[{index}].VisibilityTimeout"
    if value is None:
        raise ValidationError(f"Record {index} is missing VisibilityTimeout", field=field_name)

    if isinstance(value, int) and not isinstance(value, bool):
        timeout = value
    elif isinstance(value, str) and value.strip().isdigit():
        timeout = int(value)
    else:
        raise ValidationError(
            f"Record {index} has an invalid VisibilityTimeout",
            field=field_name,
            expected="integer seconds",
            received=repr(value),
        )

    if not 0 <= timeout <= SQS_MAX_VISIBILITY_TIMEOUT:
        raise ValidationError(
            f"Record {index} VisibilityTimeout is out of range",
            field=field_name,
            expected=f"0-{SQS_MAX_VISIBILITY_TIMEOUT}",
            received=str(timeout),
        )
    return timeout


def build_visibility_entry(record: Record, index: int, default_timeout: int | None) -> dict[str, Any]:
    return {
        "Id": entry_id(index),
        "ReceiptHandle": record["ReceiptHandle"],
        "VisibilityTimeout": resolve_visibility_timeout(record, index, default_timeout),
    }


def _check_batch_size(processor: BatchProcessor) -> None:
    if processor.options.batch_size > SQS_MAX_BATCH_ENTRIES:
        raise ValidationError(
            f"SQS batch requests accept at most {SQS_MAX_BATCH_ENTRIES} entries",
            field="batch_size",
            expected=f"<= {SQS_MAX_BATCH_ENTRIES}",
            received=str(processor.options.batch_size),
        )


def _check_records(records: Sequence[Any], required: Sequence[str]) -> None:
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError(
                f"Record {index} is not an object",
                field=f"records[{index}]",
                expected="object",
                received=type(record).__name__,
            )
        for name in required:
            if record.get(name) in (None, ""):
                raise ValidationError(
                    f"Record {index} is missing {name}",
                    field=f"records[{index}].{name}",
                )


async def send_messages(
    queue_url: str,
    records: Sequence[Record],
    processor: BatchProcessor | None = None,
    service: SQSService | None = None,
) -> ProcessResult[Record, Record]:
    """
    Send records to a queue in batches.

    Args:
        queue_url: Target queue URL
        records: Records to send; ``MessageBody`` is used when present
        processor: Batch engine to run with (defaults to default options)
        service: SQS service wrapper

    Returns:
        ProcessResult whose ``processed`` entries carry ``MessageId`` and the source ``Record``
    """
    processor = processor or BatchProcessor()
    service = service or SQSService()
    _check_batch_size(processor)
    _check_records(records, required=())
    service.ensure_client()

    async def execute(batch: list[Record]) -> BatchResult[Record, Record]:
        entries = [build_send_entry(record, index) for index, record in enumerate(batch)]
        response = await service.send_message_batch(queue_url, entries)
        processed, unprocessed = split_batch_response(batch, response)
        return BatchResult(
            processed=[
                {**{k: v for k, v in success.items() if k != "Id"}, "Record": record}
                for record, success in processed
            ],
            unprocessed=unprocessed,
        )

    result = await processor.process(list(records), execute)
    logger.info("sqs_send_complete", queue_url=queue_url, **result.to_dict())
    return result


async def delete_messages(
    queue_url: str,
    records: Sequence[Record],
    processor: BatchProcessor | None = None,
    service: SQSService | None = None,
) -> ProcessResult[Record, Record]:
    """Delete messages identified by each record's ``ReceiptHandle``."""
    processor = processor or BatchProcessor()
    service = service or SQSService()
    _check_batch_size(processor)
    _check_records(records, required=("ReceiptHandle",))
    service.ensure_client()

    async def execute(batch: list[Record]) -> BatchResult[Record, Record]:
        entries = [build_delete_entry(record, index) for index, record in enumerate(batch)]
        response = await service.delete_message_batch(queue_url, entries)
        processed, unprocessed = split_batch_response(batch, response)
        return BatchResult(
            processed=[record for record, _ in processed],
            unprocessed=unprocessed,
        )

    result = await processor.process(list(records), execute)
    logger.info("sqs_delete_complete", queue_url=queue_url, **result.to_dict())
    return result


async def change_visibility(
    queue_url: str,
    records: Sequence[Record],
    processor: BatchProcessor | None = None,
    service: SQSService | None = None,
    default_timeout: int | None = None,
) -> ProcessResult[Record, Record]:
    """
    Change the visibility timeout of in-flight messages.

    Each record needs a ``ReceiptHandle``; ``VisibilityTimeout`` comes from
    the record, or ``default_timeout`` when the record has none.
    """
    processor = processor or BatchProcessor()
    service = service or SQSService()
    _check_batch_size(processor)
    _check_records(records, required=("ReceiptHandle",))
    for index, record in enumerate(records):
        resolve_visibility_timeout(record, index, default_timeout)
    service.ensure_client()

    async def execute(batch: list[Record]) -> BatchResult[Record, Record]:
        entries = [
            build_visibility_entry(record, index, default_timeout) for index, record in enumerate(batch)
        ]
        response = await service.change_message_visibility_batch(queue_url, entries)
        processed, unprocessed = split_batch_response(batch, response)
        return BatchResult(
            processed=[record for record, _ in processed],
            unprocessed=unprocessed,
        )

    result = await processor.process(list(records), execute)
    logger.info("sqs_change_visibility_complete", queue_url=queue_url, **result.to_dict())
    return result


async def receive_messages(
    queue_url: str,
    batch_size: int = SQS_MAX_BATCH_ENTRIES,
    max_batches: int | None = None,
    wait_time_seconds: int = 20,
    visibility_timeout: int | None = None,
    service: SQSService | None = None,
) -> AsyncIterator[list[Record]]:
    """
    Receive messages batch by batch until the queue is drained.

    Stops at the first empty receive or after ``max_batches`` non-empty ones.
    """
    service = service or SQSService()
    batches = 0

    while max_batches is None or batches < max_batches:
        messages = await service.receive_message(
            queue_url,
            max_number_of_messages=batch_size,
            wait_time_seconds=wait_time_seconds,
            visibility_timeout=visibility_timeout,
        )
        if not messages:
            break
        batches += 1
        yield messages

    logger.info("sqs_receive_complete", queue_url=queue_url, batches=batches)
