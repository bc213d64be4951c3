"""Custom exceptions for aws-bulk."""

from __future__ import annotations

from typing import Any


class AWSBulkError(Exception):
    """Base exception for aws-bulk."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            **self.details,
        }


class AuthenticationError(AWSBulkError):
    """Raised when AWS authentication fails."""

    def __init__(self, message: str, profile: str | None = None, suggestion: str | None = None):
        details = {}
        if profile:
            details["profile"] = profile
        if suggestion:
            details["suggestion"] = suggestion
        super().__init__(message, details)


class ValidationError(AWSBulkError):
    """Raised when options or command input fail validation."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        expected: str | None = None,
        received: str | None = None,
    ):
        details = {}
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected
        if received is not None:
            details["received"] = received
        super().__init__(message, details)


class InputFileError(AWSBulkError):
    """Raised when an input file cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        line: int | None = None,
        raw: str | None = None,
    ):
        details: dict[str, Any] = {}
        if path:
            details["path"] = path
        if line is not None:
            details["line"] = line
        if raw:
            details["raw"] = raw[:100]
        super().__init__(message, details)


class ExecutionError(AWSBulkError):
    """Raised when an AWS operation fails."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        operation: str | None = None,
        aws_error_code: str | None = None,
        recoverable: bool = False,
        retry_after: int | None = None,
    ):
        details: dict[str, Any] = {
            "recoverable": recoverable,
        }
        if service:
            details["service"] = service
        if operation:
            details["operation"] = operation
        if aws_error_code:
            details["aws_error_code"] = aws_error_code
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(message, details)


class BatchOperationError(ExecutionError):
    """Raised when a whole batch API call fails after per-call retries."""

    def __init__(
        self,
        message: str,
        service: str,
        operation: str,
        entry_count: int,
        aws_error_code: str | None = None,
        recoverable: bool = False,
        resource: str | None = None,
    ):
        super().__init__(
            message,
            service=service,
            operation=operation,
            aws_error_code=aws_error_code,
            recoverable=recoverable,
        )
        self.details["entry_count"] = entry_count
        if resource:
            self.details["resource"] = resource
