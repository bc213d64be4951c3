"""Tests for per-call retry with full jitter."""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from aws_bulk.core.exceptions import ValidationError
from aws_bulk.execution.retry import retry_with_backoff


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "SendMessageBatch")


class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self, recording_sleep) -> None:
        """Test no retry when the call succeeds."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            return "ok"

        assert await retry_with_backoff(call, sleep=recording_sleep) == "ok"
        assert calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_throttling(self, recording_sleep) -> None:
        """Test throttled calls are retried with delays inside the jitter window."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            if calls < 3:
                raise client_error("ThrottlingException")
            return "ok"

        result = await retry_with_backoff(call, max_attempts=3, sleep=recording_sleep)

        assert result == "ok"
        assert calls == 3
        assert len(recording_sleep.delays) == 2
        first, second = recording_sleep.delays
        assert 0 <= first <= 0.1
        assert 0 <= second <= 0.2

    @pytest.mark.asyncio
    async def test_delay_capped(self, recording_sleep) -> None:
        """Test no delay exceeds max_delay_ms."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            if calls < 5:
                raise client_error("ServiceUnavailable")
            return "ok"

        await retry_with_backoff(
            call,
            max_attempts=5,
            base_delay_ms=1000,
            max_delay_ms=1500,
            sleep=recording_sleep,
        )

        assert len(recording_sleep.delays) == 4
        assert all(0 <= delay <= 1.5 for delay in recording_sleep.delays)

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, recording_sleep) -> None:
        """Test transient connection errors are retried."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise EndpointConnectionError(endpoint_url="https://sqs.us-east-1.amazonaws.com")
            return "ok"

        assert await retry_with_backoff(call, sleep=recording_sleep) == "ok"
        assert calls == 2

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self, recording_sleep) -> None:
        """Test access errors are not retried."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            raise client_error("AccessDenied")

        with pytest.raises(ClientError):
            await retry_with_backoff(call, sleep=recording_sleep)
        assert calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self, recording_sleep) -> None:
        """Test the original error propagates once attempts run out."""
        calls = 0

        async def call() -> str:
            nonlocal calls
            calls += 1
            raise client_error("ServiceUnavailable")

        with pytest.raises(ClientError) as exc_info:
            await retry_with_backoff(call, max_attempts=4, sleep=recording_sleep)

        assert calls == 4
        assert len(recording_sleep.delays) == 3
        assert exc_info.value.response["Error"]["Code"] == "ServiceUnavailable"

    @pytest.mark.asyncio
    async def test_custom_should_retry_and_on_retry(self, recording_sleep) -> None:
        """Test custom retry predicate and callback."""
        retried: list[tuple[int, float]] = []
        calls = 0

        async def call() -> int:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ValueError("first")
            return calls

        result = await retry_with_backoff(
            call,
            should_retry=lambda error: isinstance(error, ValueError),
            on_retry=lambda error, attempt, delay: retried.append((attempt, delay)),
            sleep=recording_sleep,
        )

        assert result == 2
        assert len(retried) == 1
        attempt, delay = retried[0]
        assert attempt == 1
        assert 0 <= delay <= 100
        assert recording_sleep.delays == [pytest.approx(delay / 1000)]

    @pytest.mark.asyncio
    async def test_zero_attempts_rejected(self, recording_sleep) -> None:
        """Test max_attempts below 1 is a validation error."""

        async def call() -> str:
            return "never"

        with pytest.raises(ValidationError):
            await retry_with_backoff(call, max_attempts=0, sleep=recording_sleep)
