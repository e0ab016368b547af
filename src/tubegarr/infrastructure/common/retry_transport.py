"""httpx transport with per-host rate limiting and retry on transient 5xx."""

from __future__ import annotations

import asyncio
import random

import httpx
import structlog

from tubegarr.infrastructure.common.rate_limiter import HostRateLimiter

log = structlog.get_logger(__name__)

# 429 is never retried here; it surfaces as RateLimited.
_DEFAULT_RETRYABLE = frozenset({502, 503, 504})


def _parse_retry_after(headers: httpx.Headers) -> float | None:
    """Parse a ``Retry-After`` header given in seconds; HTTP dates are ignored."""
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Wraps an httpx transport with rate limiting and bounded retries.

    Calls ``HostRateLimiter.acquire()`` before every attempt. On a
    retryable status it waits (``Retry-After`` or exponential backoff
    with jitter) and tries again, up to *max_retries* times.
    """

    def __init__(
        self,
        wrapped: httpx.AsyncBaseTransport,
        rate_limiter: HostRateLimiter,
        *,
        max_retries: int = 2,
        backoff_base: float = 0.5,
        max_backoff: float = 10.0,
        retryable_status_codes: frozenset[int] = _DEFAULT_RETRYABLE,
    ) -> None:
        self._wrapped = wrapped
        self._rate_limiter = rate_limiter
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._max_backoff = max_backoff
        self._retryable = retryable_status_codes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        attempt = 0
        while True:
            await self._rate_limiter.acquire(str(request.url))
            response = await self._wrapped.handle_async_request(request)

            if response.status_code not in self._retryable or attempt >= self._max_retries:
                return response

            await response.aread()
            await response.aclose()

            delay = self._compute_delay(response, attempt)
            log.info(
                "http_retry",
                url=str(request.url),
                status=response.status_code,
                attempt=attempt + 1,
                delay=round(delay, 2),
            )
            await asyncio.sleep(delay)
            attempt += 1

    def _compute_delay(self, response: httpx.Response, attempt: int) -> float:
        retry_after = _parse_retry_after(response.headers)
        if retry_after is not None:
            return min(retry_after, self._max_backoff)

        delay = self._backoff_base * (2**attempt)
        jitter = random.uniform(0, self._backoff_base)  # noqa: S311
        return min(delay + jitter, self._max_backoff)

    async def aclose(self) -> None:
        await self._wrapped.aclose()
