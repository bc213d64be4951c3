"""Error handling for AWS batch operations."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    EndpointConnectionError,
    NoCredentialsError,
    ParamValidationError,
    ReadTimeoutError,
)

from aws_bulk.core.exceptions import AWSBulkError, ExecutionError

logger = structlog.get_logger()


@dataclass
class ErrorInfo:
    """Information about an error for recovery suggestions."""

    category: str
    suggestion: str
    recoverable: bool
    retry_after: int | None = None


_THROTTLED = ErrorInfo(
    category="rate_limit",
    suggestion="Request was throttled. Lower --max-concurrency or retry later.",
    recoverable=True,
    retry_after=5,
)

_SERVICE_UNAVAILABLE = ErrorInfo(
    category="service",
    suggestion="AWS service is temporarily unavailable. Retry later.",
    recoverable=True,
    retry_after=30,
)

_ACCESS_DENIED = ErrorInfo(
    category="auth",
    suggestion="You don't have permission for this operation. Check IAM policies.",
    recoverable=False,
)

_EXPIRED = ErrorInfo(
    category="auth",
    suggestion="Your credentials have expired. Run 'aws sso login' or refresh your credentials.",
    recoverable=False,
)


# Common AWS error mappings
AWS_ERROR_MAPPINGS: dict[str, ErrorInfo] = {
    # Authentication / Authorization
    "AccessDenied": _ACCESS_DENIED,
    "AccessDeniedException": _ACCESS_DENIED,
    "UnauthorizedAccess": ErrorInfo(
        category="auth",
        suggestion="Check your AWS credentials and IAM permissions",
        recoverable=False,
    ),
    "ExpiredToken": _EXPIRED,
    "ExpiredTokenException": _EXPIRED,
    "InvalidClientTokenId": ErrorInfo(
        category="auth",
        suggestion="The access key is not valid. Check the selected profile.",
        recoverable=False,
    ),
    "SignatureDoesNotMatch": ErrorInfo(
        category="auth",
        suggestion="Request signature doesn't match. Check your credentials and clock sync.",
        recoverable=False,
    ),
    # SQS
    "AWS.SimpleQueueService.NonExistentQueue": ErrorInfo(
        category="resource",
        suggestion="The queue doesn't exist. Check the queue URL and region.",
        recoverable=False,
    ),
    "QueueDoesNotExist": ErrorInfo(
        category="resource",
        suggestion="The queue doesn't exist. Check the queue URL and region.",
        recoverable=False,
    ),
    "ReceiptHandleIsInvalid": ErrorInfo(
        category="validation",
        suggestion="The receipt handle is invalid. Receive the message again to get a fresh handle.",
        recoverable=False,
    ),
    "InvalidReceiptHandle": ErrorInfo(
        category="validation",
        suggestion="The receipt handle is invalid. Receive the message again to get a fresh handle.",
        recoverable=False,
    ),
    "MessageNotInflight": ErrorInfo(
        category="validation",
        suggestion="The message is not in flight; its visibility timeout already expired.",
        recoverable=False,
    ),
    "AWS.SimpleQueueService.TooManyEntriesInBatchRequest": ErrorInfo(
        category="validation",
        suggestion="SQS accepts at most 10 entries per batch. Lower --batch-size.",
        recoverable=False,
    ),
    "TooManyEntriesInBatchRequest": ErrorInfo(
        category="validation",
        suggestion="SQS accepts at most 10 entries per batch. Lower --batch-size.",
        recoverable=False,
    ),
    "AWS.SimpleQueueService.BatchRequestTooLong": ErrorInfo(
        category="validation",
        suggestion="The batch exceeds 256 KB. Lower --batch-size or shrink message bodies.",
        recoverable=False,
    ),
    "BatchRequestTooLong": ErrorInfo(
        category="validation",
        suggestion="The batch exceeds 256 KB. Lower --batch-size or shrink message bodies.",
        recoverable=False,
    ),
    "AWS.SimpleQueueService.BatchEntryIdsNotDistinct": ErrorInfo(
        category="validation",
        suggestion="Batch entry ids must be unique within a request.",
        recoverable=False,
    ),
    "AWS.SimpleQueueService.EmptyBatchRequest": ErrorInfo(
        category="validation",
        suggestion="A batch request must contain at least one entry.",
        recoverable=False,
    ),
    "KmsThrottled": _THROTTLED,
    # DynamoDB
    "ResourceNotFoundException": ErrorInfo(
        category="resource",
        suggestion="The resource doesn't exist. Verify the identifier is correct.",
        recoverable=False,
    ),
    "ProvisionedThroughputExceededException": ErrorInfo(
        category="rate_limit",
        suggestion="DynamoDB throughput exceeded. Consider increasing capacity or lowering concurrency.",
        recoverable=True,
        retry_after=1,
    ),
    "RequestLimitExceeded": ErrorInfo(
        category="rate_limit",
        suggestion="Request limit exceeded. Reduce request frequency.",
        recoverable=True,
        retry_after=10,
    ),
    "ItemCollectionSizeLimitExceededException": ErrorInfo(
        category="limit",
        suggestion="An item collection exceeded 10 GB. Review the table's partition key design.",
        recoverable=False,
    ),
    # Validation errors
    "ValidationException": ErrorInfo(
        category="validation",
        suggestion="Request validation failed. Check parameter types and formats.",
        recoverable=False,
    ),
    "InvalidParameterValue": ErrorInfo(
        category="validation",
        suggestion="One or more parameters have invalid values.",
        recoverable=False,
    ),
    "MissingParameter": ErrorInfo(
        category="validation",
        suggestion="A required parameter is missing.",
        recoverable=False,
    ),
    # Rate limiting
    "ThrottlingException": _THROTTLED,
    "Throttling": _THROTTLED,
    "RequestThrottled": _THROTTLED,
    "TooManyRequestsException": _THROTTLED,
    # Service availability
    "ServiceUnavailable": _SERVICE_UNAVAILABLE,
    "InternalError": _SERVICE_UNAVAILABLE,
    "InternalServerError": _SERVICE_UNAVAILABLE,
    "InternalFailure": _SERVICE_UNAVAILABLE,
    "RequestTimeout": ErrorInfo(
        category="service",
        suggestion="The request timed out. Retry later.",
        recoverable=True,
        retry_after=5,
    ),
}

# Connection-level failures raised by botocore before any response arrives.
TRANSIENT_EXCEPTIONS: tuple[type[Exception], ...] = (
    EndpointConnectionError,
    ConnectionClosedError,
    ReadTimeoutError,
)


def get_error_code(error: BaseException) -> str | None:
    """Extract the AWS error code from a ClientError."""
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def is_retryable_error(error: BaseException) -> bool:
    """Whether a single API call that raised ``error`` is worth retrying."""
    if isinstance(error, TRANSIENT_EXCEPTIONS):
        return True
    code = get_error_code(error)
    if code is None:
        return False
    info = AWS_ERROR_MAPPINGS.get(code)
    return bool(info and info.recoverable and info.category in ("rate_limit", "service"))


class ErrorHandler:
    """Handles AWS errors and provides actionable suggestions."""

    @classmethod
    def handle_client_error(
        cls,
        error: ClientError,
        service: str | None = None,
        operation: str | None = None,
    ) -> ExecutionError:
        """
        Handle a boto3 ClientError and convert to ExecutionError.

        Args:
            error: The boto3 ClientError
            service: The AWS service name
            operation: The operation that failed

        Returns:
            ExecutionError with actionable information
        """
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        error_message = error.response.get("Error", {}).get("Message", str(error))

        error_info = AWS_ERROR_MAPPINGS.get(error_code)
        logger.debug(
            "aws_client_error",
            service=service,
            operation=operation,
            error_code=error_code,
            known=error_info is not None,
        )

        if error_info:
            return ExecutionError(
                message=f"{error_message}. {error_info.suggestion}",
                service=service,
                operation=operation,
                aws_error_code=error_code,
                recoverable=error_info.recoverable,
                retry_after=error_info.retry_after,
            )

        return ExecutionError(
            message=error_message,
            service=service,
            operation=operation,
            aws_error_code=error_code,
            recoverable=False,
        )

    @classmethod
    def handle_exception(
        cls,
        error: Exception,
        service: str | None = None,
        operation: str | None = None,
    ) -> ExecutionError:
        """Handle any exception."""
        if isinstance(error, ExecutionError):
            return error
        if isinstance(error, ClientError):
            return cls.handle_client_error(error, service, operation)
        if isinstance(error, ParamValidationError):
            return ExecutionError(
                message=f"Parameter validation error: {error}",
                service=service,
                operation=operation,
                recoverable=False,
            )
        if isinstance(error, NoCredentialsError):
            return ExecutionError(
                message="No AWS credentials found. Run 'aws configure' or 'aws sso login'.",
                service=service,
                operation=operation,
                recoverable=False,
            )
        if isinstance(error, TRANSIENT_EXCEPTIONS):
            return ExecutionError(
                message=f"Connection to AWS failed: {error}",
                service=service,
                operation=operation,
                recoverable=True,
            )
        return ExecutionError(
            message=str(error),
            service=service,
            operation=operation,
            recoverable=False,
        )

    @classmethod
    def format_for_cli(cls, error: AWSBulkError, command: str, verbose: bool = False) -> str:
        """Format an error as a one-line CLI message, with details when verbose."""
        text = f"{command}: {error.message}"
        if verbose and error.details:
            extras = ", ".join(f"{k}={v}" for k, v in sorted(error.details.items()))
            text += f" ({extras})"
        return text
