"""Async SQS batch API wrapper."""

from __future__ import annotations

from typing import Any

import structlog

from aws_bulk.services.base import BaseAWSService

logger = structlog.get_logger()


class SQSService(BaseAWSService):
    """SQS message batch operations."""

    @property
    def service_name(self) -> str:
        return "sqs"

    async def send_message_batch(self, queue_url: str, entries: list[dict[str, Any]]) -> dict[str, Any]:
        """Send up to 10 messages; returns ``Successful`` and ``Failed`` entry lists."""
        response = await self._call_batch(
            "send_message_batch",
            entry_count=len(entries),
            resource=queue_url,
            QueueUrl=queue_url,
            Entries=entries,
        )
        self._log_outcome("send_message_batch", queue_url, response)
        return response

    async def delete_message_batch(self, queue_url: str, entries: list[dict[str, Any]]) -> dict[str, Any]:
        """Delete up to 10 messages by receipt handle."""
        response = await self._call_batch(
            "delete_message_batch",
            entry_count=len(entries),
            resource=queue_url,
            QueueUrl=queue_url,
            Entries=entries,
        )
        self._log_outcome("delete_message_batch", queue_url, response)
        return response

    async def change_message_visibility_batch(
        self,
        queue_url: str,
        entries: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Change the visibility timeout of up to 10 in-flight messages."""
        response = await self._call_batch(
            "change_message_visibility_batch",
            entry_count=len(entries),
            resource=queue_url,
            QueueUrl=queue_url,
            Entries=entries,
        )
        self._log_outcome("change_message_visibility_batch", queue_url, response)
        return response

    async def receive_message(
        self,
        queue_url: str,
        max_number_of_messages: int = 10,
        wait_time_seconds: int = 0,
        visibility_timeout: int | None = None,
    ) -> list[dict[str, Any]]:
        """Receive up to ``max_number_of_messages`` messages; empty list when none arrive."""
        parameters: dict[str, Any] = {
            "QueueUrl": queue_url,
            "MaxNumberOfMessages": max_number_of_messages,
            "WaitTimeSeconds": wait_time_seconds,
            "MessageAttributeNames": ["All"],
            "AttributeNames": ["All"],
        }
        if visibility_timeout is not None:
            parameters["VisibilityTimeout"] = visibility_timeout

        response = await self._call_batch(
            "receive_message",
            entry_count=max_number_of_messages,
            resource=queue_url,
            **parameters,
        )
        return response.get("Messages", [])

    def _log_outcome(self, operation: str, queue_url: str, response: dict[str, Any]) -> None:
        successful = len(response.get("Successful", []))
        failed = response.get("Failed", [])
        if failed:
            logger.info(
                "sqs_batch_partial_failure",
                operation=operation,
                queue_url=queue_url,
                successful=successful,
                failed=len(failed),
                codes=sorted({f.get("Code", "Unknown") for f in failed}),
            )
        else:
            logger.debug("sqs_batch_succeeded", operation=operation, queue_url=queue_url, successful=successful)
