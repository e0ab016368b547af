"""In-memory LRU cache for extraction results, plus the loading guard.

Entries expire lazily: an expired entry is dropped by the ``get`` that
finds it (or by ``trim``), never by a background task.
"""

from __future__ import annotations

import asyncio
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import structlog

from tubegarr.domain.entities.cache import CacheKey

log = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class TtlPolicy:
    """Time-to-live per service id, with a default for unknown ids."""

    default_seconds: float = DEFAULT_TTL_SECONDS
    per_service: Mapping[int, float] = field(default_factory=dict)

    def ttl_for(self, service_id: int) -> float:
        return self.per_service.get(service_id, self.default_seconds)


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ResultCache:
    """LRU with a hard bound of ``max_items``; ``trim`` shrinks it to ``trim_to``.

    Args:
        max_items: Inserting beyond this evicts the least recently used key.
        trim_to: Size ``trim`` reduces the cache to.
        ttl_policy: Per-service expiry.
        clock: Monotonic time source (seconds).
    """

    def __init__(
        self,
        max_items: int = 60,
        trim_to: int = 30,
        ttl_policy: TtlPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if trim_to > max_items:
            raise ValueError("trim_to must not exceed max_items")
        self.max_items = max_items
        self.trim_to = trim_to
        self.ttl_policy = ttl_policy or TtlPolicy()
        self._clock = clock
        self._entries: OrderedDict[CacheKey, _Entry] = OrderedDict()
        self._lock = asyncio.Lock()

    async def put(self, key: CacheKey, value: Any) -> None:
        expires_at = self._clock() + self.ttl_policy.ttl_for(key.service_id)
        async with self._lock:
            self._entries[key] = _Entry(value, expires_at)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_items:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("result_cache_evicted", url=evicted.url)

    async def get(self, key: CacheKey) -> Any | None:
        """Return the value, or ``None`` when missing or expired."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                log.debug("result_cache_expired", url=key.url)
                return None
            self._entries.move_to_end(key)
            return entry.value

    async def remove(self, key: CacheKey) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def trim(self) -> None:
        """Drop expired entries, then the oldest ones down to ``trim_to``."""
        now = self._clock()
        async with self._lock:
            for key in [k for k, e in self._entries.items() if e.expires_at <= now]:
                del self._entries[key]
            while len(self._entries) > self.trim_to:
                self._entries.popitem(last=False)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
        log.info("result_cache_cleared")

    async def size(self) -> int:
        async with self._lock:
            return len(self._entries)


@dataclass
class _Flight(Generic[T]):
    done: asyncio.Event = field(default_factory=asyncio.Event)
    value: T | None = None
    error: BaseException | None = None
    cancelled: bool = False


class LoadingGuard:
    """Tracks which URLs are being loaded and coalesces concurrent loads.

    The first caller for a URL runs the loader; concurrent callers for
    the same URL wait for its outcome (value or exception). When the
    leading caller is cancelled, a waiting caller takes over the load.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._inflight: dict[str, _Flight[Any]] = {}

    def is_loading(self, url: str) -> bool:
        return url in self._inflight

    async def run(self, url: str, loader: Callable[[], Awaitable[T]]) -> T:
        while True:
            async with self._lock:
                flight = self._inflight.get(url)
                leader = flight is None
                if flight is None:
                    flight = _Flight()
                    self._inflight[url] = flight

            if not leader:
                await flight.done.wait()
                if flight.cancelled:
                    continue
                if flight.error is not None:
                    raise flight.error
                return flight.value  # type: ignore[return-value]

            try:
                flight.value = await loader()
                return flight.value
            except asyncio.CancelledError:
                flight.cancelled = True
                raise
            except Exception as e:
                flight.error = e
                raise
            finally:
                async with self._lock:
                    if self._inflight.get(url) is flight:
                        del self._inflight[url]
                flight.done.set()
