"""Per-host token-bucket rate limiter for outgoing requests.

Extraction fans out to a handful of hosts (www.youtube.com,
youtubei.googleapis.com) with bursts of player requests, so one bucket
per host keeps a single extraction from looking like a scraper.
"""

from __future__ import annotations

import asyncio
import time
from urllib.parse import urlparse

import structlog

log = structlog.get_logger(__name__)


class TokenBucket:
    """Classic token bucket.

    Args:
        rate: Tokens replenished per second. 0 or less disables limiting.
        burst: Maximum bucket size.
    """

    def __init__(self, rate: float, burst: int = 10) -> None:
        self._rate = rate
        self._burst = burst
        self._tokens = float(burst)
        self._last_refill = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def rate(self) -> float:
        return self._rate

    async def acquire(self) -> None:
        """Wait until a token is available, then consume it."""
        if self._rate <= 0:
            return

        async with self._lock:
            self._refill()
            while self._tokens < 1.0:
                wait = (1.0 - self._tokens) / self._rate
                await asyncio.sleep(wait)
                self._refill()
            self._tokens -= 1.0

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last_refill
        self._tokens = min(self._burst, self._tokens + elapsed * self._rate)
        self._last_refill = now


class HostRateLimiter:
    """Lazily creates one :class:`TokenBucket` per request host."""

    def __init__(self, requests_per_second: float = 5.0, burst: int = 10) -> None:
        self._rps = requests_per_second
        self._burst = burst
        self._buckets: dict[str, TokenBucket] = {}

    @staticmethod
    def _get_host(url: str) -> str:
        return (urlparse(url).hostname or "").lower()

    def _get_bucket(self, host: str) -> TokenBucket:
        bucket = self._buckets.get(host)
        if bucket is None:
            bucket = TokenBucket(rate=self._rps, burst=self._burst)
            self._buckets[host] = bucket
            log.debug("rate_limit_bucket_created", host=host, rps=self._rps)
        return bucket

    async def acquire(self, url: str) -> None:
        """Wait for clearance for the host of ``url``."""
        if self._rps <= 0:
            return
        host = self._get_host(url)
        if not host:
            return
        await self._get_bucket(host).acquire()
