"""
End-to-end tests for the directory flow: HTTP app -> service -> cache -> client -> retrying transport -> upstream.
"""

import asyncio

import pytest
import httpx

from shared.config import get_config
from shared.test_helpers import UPSTREAM_URL, FakeDirectoryUpstream, seed_employees
from service_directory.app.main import API_PREFIX, create_app


class SlowUpstream(FakeDirectoryUpstream):
    """Fake upstream whose list endpoint takes a moment to answer."""

    async def handle_async(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET" and request.url.path.rstrip("/") == self.path:
            await asyncio.sleep(0.05)
        return self.handle(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle_async)


class TestDirectoryFlow:
    """End-to-end tests for the directory service."""

    @pytest.fixture
    def upstream(self):
        """Slow fake upstream seeded with Alice and Bob."""
        return SlowUpstream(seed_employees())

    @pytest.fixture
    def app(self, upstream):
        config = get_config(
            "directory",
            8111,
            upstream_url=UPSTREAM_URL,
            retry_max_attempts=3,
            retry_base_delay_ms=1,
            retry_max_jitter_ms=0,
        )
        return create_app(config=config, upstream_transport=upstream.transport())

    @pytest.fixture
    def api_client(self, app):
        """Async client speaking ASGI directly to the app."""
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://directory")

    @pytest.mark.asyncio
    async def test_concurrent_requests_fetch_upstream_once(self, api_client, upstream):
        """Test simultaneous aggregate requests share a single upstream fetch."""
        async with api_client:
            responses = await asyncio.gather(
                api_client.get(f"{API_PREFIX}/highestSalary"),
                api_client.get(f"{API_PREFIX}/topTenHighestEarningEmployeeNames"),
                api_client.get(f"{API_PREFIX}/search/ali"),
            )

        assert [r.status_code for r in responses] == [200, 200, 200]
        assert responses[0].json() == 1000
        assert responses[1].json() == ["Alice", "Bob"]
        assert [e["employee_name"] for e in responses[2].json()] == ["Alice"]
        assert upstream.calls["list"] == 1

    @pytest.mark.asyncio
    async def test_rate_limited_fetch_is_retried(self, api_client, upstream):
        """Test two 429s followed by success still produce data."""
        upstream.rate_limit_next(2)

        async with api_client:
            response = await api_client.get(API_PREFIX)

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert upstream.total_calls == 3

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit_reads_as_empty(self, api_client, upstream):
        """Test a fetch throttled past the retry budget yields an empty directory."""
        upstream.rate_limit_next(10)

        async with api_client:
            response = await api_client.get(f"{API_PREFIX}/highestSalary")

        assert response.status_code == 200
        assert response.json() == 0
        assert upstream.total_calls == 4

    @pytest.mark.asyncio
    async def test_mutations_refresh_aggregates(self, api_client, upstream):
        """Test create and delete are reflected in the next aggregate read."""
        async with api_client:
            assert (await api_client.get(f"{API_PREFIX}/highestSalary")).json() == 1000

            created = await api_client.post(
                API_PREFIX, json={"name": "Dana", "salary": 4000, "age": 41, "title": "CTO"}
            )
            assert created.status_code == 200
            assert (await api_client.get(f"{API_PREFIX}/highestSalary")).json() == 4000

            deleted = await api_client.delete(f"{API_PREFIX}/{created.json()['id']}")
            assert deleted.json() == "Dana"
            names = (await api_client.get(f"{API_PREFIX}/topTenHighestEarningEmployeeNames")).json()

        assert names == ["Alice", "Bob"]
        assert upstream.calls["list"] == 3
