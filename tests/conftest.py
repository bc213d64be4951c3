"""Pytest configuration and fixtures for aws-bulk tests."""

import os
from typing import Any, Generator

import boto3
import pytest
import structlog
from moto import mock_aws

from aws_bulk.config import AppConfig, reset_config, set_config
from aws_bulk.core.session import SessionManager, reset_session_manager


class FixedRandom:
    """Random source that always returns the same value."""

    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingSleep:
    """Async sleep replacement that records requested delays (seconds)."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ListLogger:
    """Batch logger collecting messages."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def log(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset global state before each test."""
    yield
    reset_session_manager()
    reset_config()
    structlog.reset_defaults()


@pytest.fixture
def aws_credentials() -> Generator[None, None, None]:
    """Mock AWS credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    yield
    # Cleanup
    for key in [
        "AWS_ACCESS_KEY_ID",
        "AWS_SECRET_ACCESS_KEY",
        "AWS_SECURITY_TOKEN",
        "AWS_SESSION_TOKEN",
    ]:
        os.environ.pop(key, None)


@pytest.fixture
def mock_aws_services(aws_credentials: None) -> Generator[None, None, None]:
    """Mock all AWS services with moto."""
    with mock_aws():
        yield


@pytest.fixture
def test_config() -> Generator[AppConfig, None, None]:
    """Install a config with explicit defaults."""
    config = AppConfig(default_region="us-east-1", default_profile=None)
    set_config(config)
    yield config


@pytest.fixture
def session_manager(test_config: AppConfig) -> SessionManager:
    """Create a fresh session manager."""
    return SessionManager()


@pytest.fixture
def fixed_random() -> FixedRandom:
    """Jitter source pinned to 0.5."""
    return FixedRandom(0.5)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep that returns immediately and records delays."""
    return RecordingSleep()


@pytest.fixture
def list_logger() -> ListLogger:
    """Batch logger that keeps every message."""
    return ListLogger()


@pytest.fixture
def sqs_client(mock_aws_services: None) -> Any:
    """Create a mocked SQS client."""
    return boto3.client("sqs", region_name="us-east-1")


@pytest.fixture
def queue_url(sqs_client: Any) -> str:
    """Create a mocked queue and return its URL."""
    return sqs_client.create_queue(QueueName="bulk-test-queue")["QueueUrl"]


@pytest.fixture
def dynamodb_client(mock_aws_services: None) -> Any:
    """Create a mocked DynamoDB client."""
    return boto3.client("dynamodb", region_name="us-east-1")


@pytest.fixture
def table_name(dynamodb_client: Any) -> str:
    """Create a mocked table keyed on 'id'."""
    dynamodb_client.create_table(
        TableName="bulk-test-table",
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    return "bulk-test-table"
