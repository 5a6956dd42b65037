"""
Unit tests for the rate-limit retrying transport.
"""

import pytest
import httpx
from unittest.mock import AsyncMock, patch

from shared.errors import TransportError
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig, RetryingTransport, calculate_backoff


URL = "http://directory.test/api/v1/employee"


class ScriptedUpstream:
    """Answers with a fixed sequence of status codes, repeating the last one."""

    def __init__(self, *statuses: int):
        self.statuses = list(statuses)
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        status = self.statuses[min(self.calls, len(self.statuses) - 1)]
        self.calls += 1
        return httpx.Response(status, json={"data": [], "status": str(status)})


class TestRetryingTransport:
    """Test cases for RetryingTransport."""

    @pytest.fixture
    def sleep(self):
        """Sleep stub so backoff does not slow the tests down."""
        return AsyncMock()

    def make_transport(self, upstream, sleep, max_retries=5, **kwargs):
        config = RetryConfig(max_retries=max_retries, base_delay=0.01, max_jitter=0.0)
        return RetryingTransport(httpx.MockTransport(upstream), config, sleep=sleep, **kwargs)

    @pytest.mark.asyncio
    async def test_succeeds_after_two_rate_limited_attempts(self, sleep):
        """Test 429, 429, 200 returns the success after exactly three calls."""
        upstream = ScriptedUpstream(429, 429, 200)
        transport = self.make_transport(upstream, sleep)

        response = await transport.execute(httpx.Request("GET", URL))

        assert response.status_code == 200
        assert upstream.calls == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_returns_rate_limited_response_when_retries_exhausted(self, sleep):
        """Test persistent 429 with max_retries=3 returns the 429 after four calls."""
        upstream = ScriptedUpstream(429)
        transport = self.make_transport(upstream, sleep, max_retries=3)

        response = await transport.execute(httpx.Request("GET", URL))

        assert response.status_code == 429
        assert upstream.calls == 4
        assert sleep.await_count == 3

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, sleep):
        """Test max_retries=0 issues one call and never backs off."""
        upstream = ScriptedUpstream(429)
        transport = self.make_transport(upstream, sleep, max_retries=0)

        response = await transport.execute(httpx.Request("GET", URL))

        assert response.status_code == 429
        assert upstream.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_error_statuses_pass_through(self, sleep):
        """Test non-429 failures are returned unmodified without retry."""
        upstream = ScriptedUpstream(503)
        transport = self.make_transport(upstream, sleep)

        response = await transport.execute(httpx.Request("GET", URL))

        assert response.status_code == 503
        assert upstream.calls == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error_immediately(self, sleep):
        """Test connection errors are not retried and surface as TransportError."""
        calls = []

        def refuse(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        transport = self.make_transport(refuse, sleep)

        with pytest.raises(TransportError) as exc_info:
            await transport.execute(httpx.Request("GET", URL))

        assert len(calls) == 1
        assert exc_info.value.details["error_type"] == "ConnectError"
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backoff_grows_exponentially_with_jitter(self, sleep):
        """Test sleep receives base * 2^(attempt-1) + jitter for each retry."""
        upstream = ScriptedUpstream(429, 429, 429, 200)
        config = RetryConfig(max_retries=5, base_delay=3.0, max_jitter=0.5)
        transport = RetryingTransport(httpx.MockTransport(upstream), config, sleep=sleep)

        with patch("shared.retry.random.uniform", return_value=0.25) as mock_uniform:
            await transport.execute(httpx.Request("GET", URL))

        delays = [call.args[0] for call in sleep.await_args_list]
        assert delays == [3.25, 6.25, 12.25]
        mock_uniform.assert_called_with(0, 0.5)

    @pytest.mark.asyncio
    async def test_works_as_async_client_transport(self, sleep):
        """Test the transport retries transparently under httpx.AsyncClient."""
        upstream = ScriptedUpstream(429, 200)
        transport = self.make_transport(upstream, sleep)

        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get(URL)

        assert response.status_code == 200
        assert response.json()["status"] == "200"
        assert upstream.calls == 2

    @pytest.mark.asyncio
    async def test_counts_retries_in_metrics(self, sleep):
        """Test each retry increments the rate-limit counter."""
        metrics = MetricsCollector("directory")
        upstream = ScriptedUpstream(429, 429, 200)
        transport = self.make_transport(upstream, sleep, metrics=metrics)

        await transport.execute(httpx.Request("GET", URL))

        assert metrics.sample("rate_limit_retries_total", method="GET") == 2


class TestCalculateBackoff:
    """Test cases for calculate_backoff."""

    def test_stays_within_jitter_window(self):
        """Test the delay lands in [base * 2^(n-1), base * 2^(n-1) + jitter]."""
        config = RetryConfig(base_delay=3.0, max_jitter=0.5)

        for attempt in range(1, 6):
            delay = calculate_backoff(attempt, config)
            floor = 3.0 * 2 ** (attempt - 1)
            assert floor <= delay <= floor + 0.5

    def test_exponential_part_is_capped(self):
        """Test max_delay caps the exponential part before jitter."""
        config = RetryConfig(base_delay=3.0, max_delay=10.0, max_jitter=0.0)

        assert calculate_backoff(10, config) == 10.0

    def test_rejects_negative_retry_budget(self):
        """Test a negative retry budget is refused."""
        with pytest.raises(ValueError):
            RetryConfig(max_retries=-1)
