"""
Retry mechanism for rate-limited upstream calls.

``RetryingTransport`` wraps another httpx transport and re-issues a request
when the upstream answers with a throttling status. Once the retry budget
is spent the last throttled response is handed back unchanged; callers
treat it as "no data". Connection-level failures are never retried here.
"""

import asyncio
import random
from typing import Awaitable, Callable, FrozenSet, Optional

import httpx

from shared.errors import TransportError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


RATE_LIMIT_STATUSES: FrozenSet[int] = frozenset({429})


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_retries: int = 5,
                 base_delay: float = 3.0,
                 max_delay: float = 60.0,
                 exponential_base: float = 2.0,
                 max_jitter: float = 0.5):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.max_jitter = max_jitter

    @classmethod
    def from_settings(cls, config) -> "RetryConfig":
        """Build a retry config from service settings (millisecond fields)."""
        return cls(
            max_retries=config.retry_max_attempts,
            base_delay=config.retry_base_delay_ms / 1000.0,
            max_delay=config.retry_max_delay_ms / 1000.0,
            max_jitter=config.retry_max_jitter_ms / 1000.0,
        )


def calculate_backoff(attempt: int, config: RetryConfig) -> float:
    """Delay before retry number ``attempt`` (1-based), in seconds."""
    delay = config.base_delay * (config.exponential_base ** (attempt - 1))

    # Cap the exponential part only; jitter is always added on top
    delay = min(delay, config.max_delay)

    if config.max_jitter > 0:
        delay += random.uniform(0, config.max_jitter)

    return max(0.0, delay)


class RetryingTransport(httpx.AsyncBaseTransport):
    """httpx transport that retries throttled requests with exponential backoff."""

    def __init__(self,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 config: Optional[RetryConfig] = None,
                 *,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 metrics: Optional[MetricsCollector] = None):
        self._transport = transport if transport is not None else httpx.AsyncHTTPTransport()
        self.config = config or RetryConfig()
        self._sleep = sleep
        self.metrics = metrics
        self.logger = get_logger("directory.transport")

    async def execute(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying while the upstream signals rate limiting."""
        attempt = 0

        while True:
            try:
                response = await self._transport.handle_async_request(request)
            except httpx.TransportError as exc:
                self.logger.error(
                    "Upstream transport failure",
                    url=str(request.url),
                    method=request.method,
                    error=str(exc)
                )
                raise TransportError(
                    f"{request.method} {request.url} failed: {exc}",
                    details={"url": str(request.url), "error_type": type(exc).__name__}
                ) from exc

            if response.status_code not in RATE_LIMIT_STATUSES or attempt >= self.config.max_retries:
                if attempt > 0:
                    self.logger.debug(
                        "Finished retries",
                        url=str(request.url),
                        retries=attempt,
                        status_code=response.status_code
                    )
                return response

            attempt += 1
            delay = calculate_backoff(attempt, self.config)
            self.logger.warning(
                "Upstream rate limited, retrying",
                url=str(request.url),
                attempt=attempt,
                max_retries=self.config.max_retries,
                delay=round(delay, 3)
            )
            if self.metrics:
                self.metrics.increment_counter("rate_limit_retries_total", method=request.method)

            # Release the throttled response before trying again
            await response.aclose()
            await self._sleep(delay)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        return await self.execute(request)

    async def aclose(self) -> None:
        await self._transport.aclose()
