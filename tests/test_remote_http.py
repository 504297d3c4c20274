"""Tests for HTTP retry utilities."""

import httpx
import pytest

from kbsync.core.remote.http import (
    RetryConfig,
    is_retryable_error,
    is_retryable_response,
    send_with_retry,
)


class TestRetryConfig:
    """Test suite for RetryConfig."""

    def test_default_values(self) -> None:
        config = RetryConfig()
        assert config.max_retries == 2
        assert config.base_delay == 0.5
        assert config.multiplier == 2.0
        assert config.jitter is True
        assert config.jitter_ratio == 0.2

    def test_zero_retries_allowed(self) -> None:
        """max_retries=0 disables retrying."""
        assert RetryConfig(max_retries=0).max_retries == 0

    def test_invalid_max_retries(self) -> None:
        with pytest.raises(ValueError, match="max_retries must be non-negative"):
            RetryConfig(max_retries=-1)

    def test_invalid_base_delay(self) -> None:
        with pytest.raises(ValueError, match="base_delay must be positive"):
            RetryConfig(base_delay=0)

    def test_invalid_multiplier(self) -> None:
        with pytest.raises(ValueError, match="multiplier must be >= 1.0"):
            RetryConfig(multiplier=0.5)

    def test_invalid_jitter_ratio(self) -> None:
        with pytest.raises(ValueError, match="jitter_ratio must be between"):
            RetryConfig(jitter_ratio=1.5)

    def test_calculate_delay_no_jitter(self) -> None:
        config = RetryConfig(base_delay=1.0, multiplier=2.0, jitter=False)

        assert config.calculate_delay(0) == 1.0
        assert config.calculate_delay(1) == 2.0
        assert config.calculate_delay(2) == 4.0

    def test_calculate_delay_with_jitter(self) -> None:
        """Jittered delays stay within the configured variance."""
        config = RetryConfig(base_delay=1.0, multiplier=2.0, jitter=True, jitter_ratio=0.2)

        for _ in range(20):
            delay = config.calculate_delay(1)
            assert 1.6 <= delay <= 2.4


class TestIsRetryable:
    """Tests for the retryable-failure predicates."""

    def test_network_errors(self) -> None:
        request = httpx.Request("GET", "https://api.example.com")
        assert is_retryable_error(httpx.ConnectError("refused", request=request))
        assert is_retryable_error(httpx.ReadTimeout("slow", request=request))

    def test_other_exceptions(self) -> None:
        assert not is_retryable_error(ValueError("nope"))

    @pytest.mark.parametrize(
        ("status", "expected"),
        [(200, False), (401, False), (409, False), (422, False), (500, True), (503, True)],
    )
    def test_responses(self, status: int, expected: bool) -> None:
        assert is_retryable_response(httpx.Response(status)) is expected


class TestSendWithRetry:
    """Tests for send_with_retry()."""

    @staticmethod
    def _client(statuses: list[int], seen: list[int]) -> httpx.Client:
        def handler(request: httpx.Request) -> httpx.Response:
            status = statuses[min(len(seen), len(statuses) - 1)]
            seen.append(status)
            return httpx.Response(status)

        return httpx.Client(transport=httpx.MockTransport(handler))

    def test_returns_after_recovery(self) -> None:
        seen: list[int] = []
        delays: list[float] = []
        client = self._client([503, 200], seen)
        request = client.build_request("GET", "https://api.example.com/x")

        response = send_with_retry(
            client, request, RetryConfig(base_delay=0.5, jitter=False), sleep=delays.append
        )

        assert response.status_code == 200
        assert seen == [503, 200]
        assert delays == [0.5]

    def test_returns_last_failure(self) -> None:
        """Once retries run out the final 5xx response is returned, not raised."""
        seen: list[int] = []
        delays: list[float] = []
        client = self._client([502], seen)
        request = client.build_request("GET", "https://api.example.com/x")

        response = send_with_retry(
            client, request, RetryConfig(max_retries=2, jitter=False), sleep=delays.append
        )

        assert response.status_code == 502
        assert len(seen) == 3
        assert delays == [0.5, 1.0]

    def test_zero_retries(self) -> None:
        seen: list[int] = []
        client = self._client([500], seen)
        request = client.build_request("GET", "https://api.example.com/x")

        send_with_retry(client, request, RetryConfig(max_retries=0), sleep=lambda _: None)

        assert seen == [500]

    def test_raises_when_network_keeps_failing(self) -> None:
        attempts: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        request = client.build_request("GET", "https://api.example.com/x")

        with pytest.raises(httpx.ConnectError):
            send_with_retry(client, request, RetryConfig(max_retries=1), sleep=lambda _: None)

        assert len(attempts) == 2
