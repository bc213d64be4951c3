"""Tests for DynamoDB bulk writes."""

from typing import Any

import pytest

from aws_bulk.core.exceptions import ValidationError
from aws_bulk.execution.batch import BatchProcessor, BatchProcessorOptions
from aws_bulk.operations.dynamodb import batch_write_items, split_unprocessed
from aws_bulk.services.dynamodb import DynamoDBService, to_attribute_map


class FakeDynamoDBService:
    """DynamoDB stand-in returning the first N requests as unprocessed once."""

    def __init__(self, unprocessed_first: int = 0) -> None:
        self.unprocessed_first = unprocessed_first
        self.calls: list[dict[str, list[dict[str, Any]]]] = []

    def ensure_client(self) -> None:
        return None

    async def batch_write_item(self, request_items: dict[str, list[dict[str, Any]]]) -> dict[str, Any]:
        first_call = not self.calls
        self.calls.append(request_items)
        if not first_call or not self.unprocessed_first:
            return {"UnprocessedItems": {}}
        return {
            "UnprocessedItems": {
                table: requests[: self.unprocessed_first] for table, requests in request_items.items()
            }
        }


class TestAttributeMaps:
    """Tests for attribute value conversion."""

    def test_to_attribute_map(self) -> None:
        """Test plain JSON values become typed attributes."""
        assert to_attribute_map({"id": "a", "count": 2, "price": 9.5, "tags": ["x"], "active": True}) == {
            "id": {"S": "a"},
            "count": {"N": "2"},
            "price": {"N": "9.5"},
            "tags": {"L": [{"S": "x"}]},
            "active": {"BOOL": True},
        }


class TestSplitUnprocessed:
    """Tests for split_unprocessed."""

    def test_duplicates_matched_once(self) -> None:
        """Test identical records are only claimed once per unprocessed entry."""
        batch = [{"id": "a"}, {"id": "a"}, {"id": "b"}]
        requests = [{"PutRequest": {"Item": to_attribute_map(item)}} for item in batch]
        processed, unprocessed = split_unprocessed(batch, requests, [requests[0]])
        assert unprocessed == [{"id": "a"}]
        assert processed == [{"id": "a"}, {"id": "b"}]


class TestBatchWriteItems:
    """Tests for batch_write_items."""

    @pytest.mark.asyncio
    async def test_writes_all_items(self, table_name: str, dynamodb_client: Any, fixed_random, recording_sleep) -> None:
        """Test 60 items are written in batches of 25."""
        processor = BatchProcessor(
            BatchProcessorOptions(batch_size=25, max_concurrency=2),
            rng=fixed_random,
            sleep=recording_sleep,
        )
        items = [{"id": f"item-{i}", "value": i, "ratio": i / 2} for i in range(60)]

        result = await batch_write_items(table_name, items, processor, DynamoDBService())

        assert result.total_batches == 3
        assert result.failed == []
        assert len(result.processed) == 60
        assert dynamodb_client.scan(TableName=table_name, Select="COUNT")["Count"] == 60

    @pytest.mark.asyncio
    async def test_defaults_to_batches_of_25(self) -> None:
        """Test the default processor uses the 25-item cap."""
        service = FakeDynamoDBService()
        result = await batch_write_items("orders", [{"id": str(i)} for i in range(30)], service=service)

        assert result.total_batches == 2
        assert sorted(len(call["orders"]) for call in service.calls) == [5, 25]

    @pytest.mark.asyncio
    async def test_unprocessed_items_retried(self, fixed_random, recording_sleep) -> None:
        """Test UnprocessedItems are resubmitted."""
        service = FakeDynamoDBService(unprocessed_first=2)
        processor = BatchProcessor(BatchProcessorOptions(batch_size=25), rng=fixed_random, sleep=recording_sleep)
        items = [{"id": str(i)} for i in range(5)]

        result = await batch_write_items("orders", items, processor, service)

        assert result.failed == []
        assert len(result.processed) == 5
        assert len(service.calls) == 2
        assert [r["PutRequest"]["Item"]["id"]["S"] for r in service.calls[1]["orders"]] == ["0", "1"]
        assert recording_sleep.delays == [2.5]

    @pytest.mark.asyncio
    async def test_missing_table_fails_items(self, mock_aws_services: None, fixed_random, recording_sleep) -> None:
        """Test a missing table leaves items failed."""
        processor = BatchProcessor(BatchProcessorOptions(batch_size=25, max_retries=0), rng=fixed_random, sleep=recording_sleep)
        items = [{"id": "a"}]
        result = await batch_write_items("no-such-table", items, processor, DynamoDBService())
        assert result.failed == items

    @pytest.mark.asyncio
    async def test_validation(self) -> None:
        """Test batch size and item shape checks."""
        with pytest.raises(ValidationError):
            await batch_write_items(
                "orders", [{"id": "a"}], BatchProcessor(BatchProcessorOptions(batch_size=26)), FakeDynamoDBService()
            )
        with pytest.raises(ValidationError):
            await batch_write_items("orders", [{}], service=FakeDynamoDBService())
