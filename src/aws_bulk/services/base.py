"""Base class for the async AWS service wrappers used by bulk operations."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import structlog

from aws_bulk.config import get_config
from aws_bulk.core.exceptions import BatchOperationError, ValidationError
from aws_bulk.core.session import SessionManager, get_session_manager
from aws_bulk.execution.errors import ErrorHandler
from aws_bulk.execution.retry import retry_with_backoff

logger = structlog.get_logger()


class BaseAWSService(ABC):
    """Async facade over one boto3 client.

    boto3 is synchronous, so every call runs in a worker thread through
    ``asyncio.to_thread`` and is retried on throttling and transient
    errors before it is reported as failed.

    Example:
        class SQSService(BaseAWSService):
            @property
            def service_name(self) -> str:
                return "sqs"
    """

    def __init__(
        self,
        session_manager: SessionManager | None = None,
        region: str | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """Initialize the service."""
        self.session_manager = session_manager or get_session_manager()
        self.region = region
        self.max_attempts = max_attempts if max_attempts is not None else get_config().call_max_attempts
        if self.max_attempts < 1:
            raise ValidationError(
                "max_attempts must be at least 1",
                field="max_attempts",
                expected=">= 1",
                received=str(self.max_attempts),
            )
        self._client: Any = None

    @property
    @abstractmethod
    def service_name(self) -> str:
        """Return the boto3 service name (e.g., 'sqs')."""
        ...

    @property
    def client(self) -> Any:
        """Get or create the boto3 client for this service."""
        if self._client is None:
            self._client = self.session_manager.get_client(self.service_name, self.region)
        return self._client

    def ensure_client(self) -> Any:
        """Create the client now so profile problems surface before any batch runs."""
        return self.client

    async def _call_batch(
        self,
        operation: str,
        entry_count: int,
        resource: str | None = None,
        **parameters: Any,
    ) -> dict[str, Any]:
        """
        Call a batch API with per-call retries.

        Args:
            operation: boto3 method name (e.g. 'send_message_batch')
            entry_count: Number of entries in the request, for error reporting
            resource: Queue URL or table name, for error reporting
            **parameters: Request parameters

        Returns:
            The raw response without ResponseMetadata

        Raises:
            BatchOperationError: When the call still fails after retries
        """
        method = getattr(self.client, operation)

        try:
            response = await retry_with_backoff(
                lambda: asyncio.to_thread(method, **parameters),
                max_attempts=self.max_attempts,
            )
        except Exception as e:
            error = ErrorHandler.handle_exception(e, self.service_name, operation)
            logger.warning(
                "batch_call_failed",
                service=self.service_name,
                operation=operation,
                entries=entry_count,
                error_code=error.details.get("aws_error_code"),
                error=error.message,
            )
            raise BatchOperationError(
                f"Failed to {operation.replace('_', ' ')}: {error.message}",
                service=self.service_name,
                operation=operation,
                entry_count=entry_count,
                aws_error_code=error.details.get("aws_error_code"),
                recoverable=bool(error.details.get("recoverable")),
                resource=resource,
            ) from e

        logger.debug(
            "batch_call_complete",
            service=self.service_name,
            operation=operation,
            entries=entry_count,
        )
        return {k: v for k, v in response.items() if k != "ResponseMetadata"}
