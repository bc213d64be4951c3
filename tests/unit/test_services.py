"""Tests for the async AWS service wrappers."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from aws_bulk.config import AppConfig
from aws_bulk.core.exceptions import BatchOperationError, ValidationError
from aws_bulk.core.session import SessionManager
from aws_bulk.services.dynamodb import DynamoDBService
from aws_bulk.services.sqs import SQSService

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/orders"


def client_error(code: str, operation: str = "SendMessageBatch") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} happened"}}, operation)


class TestSQSService:
    """Tests for SQSService."""

    @pytest.fixture
    def mock_client(self) -> MagicMock:
        """Create a mock SQS client."""
        return MagicMock()

    @pytest.fixture
    def mock_session_manager(self, mock_client: MagicMock) -> MagicMock:
        """Create a mock session manager handing out the mock client."""
        manager = MagicMock(spec=SessionManager)
        manager.active_region = "us-east-1"
        manager.get_client.return_value = mock_client
        return manager

    @pytest.fixture
    def service(self, mock_session_manager: MagicMock, test_config: AppConfig) -> SQSService:
        """Create a service with three attempts per call."""
        return SQSService(session_manager=mock_session_manager, max_attempts=3)

    @pytest.mark.asyncio
    async def test_send_strips_response_metadata(self, service: SQSService, mock_client: MagicMock) -> None:
        """Test the response is returned without ResponseMetadata."""
        mock_client.send_message_batch.return_value = {
            "Successful": [{"Id": "msg-0", "MessageId": "m-1"}],
            "Failed": [],
            "ResponseMetadata": {"RequestId": "r"},
        }

        response = await service.send_message_batch(QUEUE_URL, [{"Id": "msg-0", "MessageBody": "x"}])

        assert response == {"Successful": [{"Id": "msg-0", "MessageId": "m-1"}], "Failed": []}
        mock_client.send_message_batch.assert_called_once_with(
            QueueUrl=QUEUE_URL, Entries=[{"Id": "msg-0", "MessageBody": "x"}]
        )

    @pytest.mark.asyncio
    async def test_throttled_call_retried(self, service: SQSService, mock_client: MagicMock) -> None:
        """Test a throttled call is retried before succeeding."""
        mock_client.delete_message_batch.side_effect = [
            client_error("ThrottlingException", "DeleteMessageBatch"),
            {"Successful": [{"Id": "msg-0"}], "Failed": []},
        ]

        response = await service.delete_message_batch(QUEUE_URL, [{"Id": "msg-0", "ReceiptHandle": "rh"}])

        assert response["Successful"] == [{"Id": "msg-0"}]
        assert mock_client.delete_message_batch.call_count == 2

    @pytest.mark.asyncio
    async def test_permanent_error_raises_batch_error(self, service: SQSService, mock_client: MagicMock) -> None:
        """Test non-retryable errors become BatchOperationError on the first attempt."""
        mock_client.send_message_batch.side_effect = client_error("AWS.SimpleQueueService.NonExistentQueue")

        with pytest.raises(BatchOperationError) as exc_info:
            await service.send_message_batch(QUEUE_URL, [{"Id": "msg-0", "MessageBody": "x"}])

        error = exc_info.value
        assert mock_client.send_message_batch.call_count == 1
        assert error.details["aws_error_code"] == "AWS.SimpleQueueService.NonExistentQueue"
        assert error.details["entry_count"] == 1
        assert error.details["resource"] == QUEUE_URL
        assert error.details["recoverable"] is False
        assert isinstance(error.__cause__, ClientError)

    @pytest.mark.asyncio
    async def test_receive_parameters(self, service: SQSService, mock_client: MagicMock) -> None:
        """Test receive passes long polling and visibility options."""
        mock_client.receive_message.return_value = {"Messages": [{"MessageId": "1", "Body": "b"}]}

        messages = await service.receive_message(QUEUE_URL, 5, wait_time_seconds=10, visibility_timeout=30)

        assert messages == [{"MessageId": "1", "Body": "b"}]
        kwargs = mock_client.receive_message.call_args.kwargs
        assert kwargs["MaxNumberOfMessages"] == 5
        assert kwargs["WaitTimeSeconds"] == 10
        assert kwargs["VisibilityTimeout"] == 30
        assert kwargs["MessageAttributeNames"] == ["All"]

    @pytest.mark.asyncio
    async def test_receive_empty(self, service: SQSService, mock_client: MagicMock) -> None:
        """Test an empty receive returns an empty list."""
        mock_client.receive_message.return_value = {}
        assert await service.receive_message(QUEUE_URL) == []

    def test_client_created_once(self, service: SQSService, mock_session_manager: MagicMock) -> None:
        """Test the client is created lazily and cached."""
        service.ensure_client()
        service.ensure_client()
        mock_session_manager.get_client.assert_called_once_with("sqs", None)


class TestDynamoDBService:
    """Tests for DynamoDBService."""

    @pytest.mark.asyncio
    async def test_batch_write_item(self, test_config: AppConfig) -> None:
        """Test the request is forwarded and UnprocessedItems returned."""
        mock_client = MagicMock()
        unprocessed = {"orders": [{"PutRequest": {"Item": {"id": {"S": "a"}}}}]}
        mock_client.batch_write_item.return_value = {"UnprocessedItems": unprocessed}
        manager = MagicMock(spec=SessionManager)
        manager.get_client.return_value = mock_client

        service = DynamoDBService(session_manager=manager)
        request = {"orders": [{"PutRequest": {"Item": {"id": {"S": "a"}}}}]}
        response = await service.batch_write_item(request)

        assert response["UnprocessedItems"] == unprocessed
        mock_client.batch_write_item.assert_called_once_with(RequestItems=request)
        assert service.max_attempts == test_config.call_max_attempts


class TestServiceAttempts:
    """Tests for the per-call attempt budget."""

    def test_explicit_zero_rejected(self, test_config: AppConfig) -> None:
        """Test an explicit max_attempts of 0 is not treated as unset."""
        with pytest.raises(ValidationError) as exc_info:
            SQSService(session_manager=MagicMock(spec=SessionManager), max_attempts=0)
        assert exc_info.value.details["field"] == "max_attempts"

    def test_zero_from_environment_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test AWS_BULK_CALL_MAX_ATTEMPTS=0 fails at construction."""
        monkeypatch.setenv("AWS_BULK_CALL_MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            DynamoDBService(session_manager=MagicMock(spec=SessionManager))

    def test_environment_value_used(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the configured attempt count applies when none is passed."""
        monkeypatch.setenv("AWS_BULK_CALL_MAX_ATTEMPTS", "5")
        service = SQSService(session_manager=MagicMock(spec=SessionManager))
        assert service.max_attempts == 5
