"""Core modules for aws-bulk."""

from aws_bulk.core.exceptions import (
    AWSBulkError,
    AuthenticationError,
    BatchOperationError,
    ExecutionError,
    InputFileError,
    ValidationError,
)
from aws_bulk.core.session import SessionManager, get_session_manager, reset_session_manager

__all__ = [
    # Exceptions
    "AWSBulkError",
    "AuthenticationError",
    "BatchOperationError",
    "ExecutionError",
    "InputFileError",
    "ValidationError",
    # Session
    "SessionManager",
    "get_session_manager",
    "reset_session_manager",
]
