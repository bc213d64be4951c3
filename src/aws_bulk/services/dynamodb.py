"""Async DynamoDB batch API wrapper."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import structlog
from boto3.dynamodb.types import TypeSerializer

from aws_bulk.services.base import BaseAWSService

logger = structlog.get_logger()

_serializer = TypeSerializer()


def to_attribute_map(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a plain JSON record into DynamoDB attribute values.

    Floats are not accepted by the serializer, so numbers go through Decimal.
    """
    normalized = json.loads(json.dumps(item, default=str), parse_float=Decimal)
    return {key: _serializer.serialize(value) for key, value in normalized.items()}


class DynamoDBService(BaseAWSService):
    """DynamoDB batch operations."""

    @property
    def service_name(self) -> str:
        return "dynamodb"

    async def batch_write_item(self, request_items: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
        """Write up to 25 put/delete requests; returns ``UnprocessedItems``."""
        entry_count = sum(len(requests) for requests in request_items.values())
        response = await self._call_batch(
            "batch_write_item",
            entry_count=entry_count,
            resource=",".join(request_items),
            RequestItems=request_items,
        )

        unprocessed = response.get("UnprocessedItems", {})
        unprocessed_count = sum(len(requests) for requests in unprocessed.values())
        if unprocessed_count:
            logger.info(
                "dynamodb_batch_write_unprocessed",
                tables=sorted(unprocessed),
                requested=entry_count,
                unprocessed=unprocessed_count,
            )
        return response
