"""Stream info use case.

link -> canonical URL -> result cache -> (single-flight) extraction
-> cached StreamInfo.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any, Protocol, TypeVar

import structlog

from tubegarr.domain.entities.cache import CacheKey
from tubegarr.domain.entities.streams import StreamInfo
from tubegarr.domain.ports.po_token import PoTokenProviderPort
from tubegarr.domain.ports.stream_extractor import StreamExtractorPort

log = structlog.get_logger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Protocols: what this use case needs from its collaborators.
# Infrastructure components satisfy these via structural subtyping.
# ---------------------------------------------------------------------------


class _ResultCache(Protocol):
    async def get(self, key: CacheKey) -> Any | None: ...

    async def put(self, key: CacheKey, value: Any) -> None: ...

    async def remove(self, key: CacheKey) -> None: ...

    async def trim(self) -> None: ...

    async def clear(self) -> None: ...


class _LoadingGuard(Protocol):
    def is_loading(self, url: str) -> bool: ...

    async def run(self, url: str, loader: Callable[[], Awaitable[T]]) -> T: ...


class StreamInfoUseCase:
    """Public entry point of the extraction engine.

    Results are served from the cache until they expire; concurrent
    requests for one URL share a single extraction.
    """

    def __init__(
        self,
        *,
        extractor: StreamExtractorPort,
        cache: _ResultCache,
        loading: _LoadingGuard,
    ) -> None:
        self._extractor = extractor
        self._cache = cache
        self._loading = loading

    def _key(self, url: str) -> CacheKey:
        return CacheKey(service_id=self._extractor.service_id, url=url)

    async def fetch_stream_info(
        self, url_or_id: str, *, force_load: bool = False
    ) -> StreamInfo:
        """Return the stream info for a link or bare video id.

        Raises:
            ExtractionError: the link is invalid or extraction failed
                (failures are never cached).
        """
        url = self._extractor.canonical_url(url_or_id)
        start_position = self._extractor.start_position(url_or_id)
        key = self._key(url)

        if force_load:
            await self._cache.remove(key)
        else:
            cached = await self._cache.get(key)
            if cached is not None:
                log.debug("stream_info_cache_hit", url=url)
                return replace(cached, start_position=start_position)

        async def load() -> StreamInfo:
            info = await self._extractor.extract(url)
            await self._cache.put(key, info)
            return info

        info = await self._loading.run(url, load)
        log.info(
            "stream_info_fetched",
            url=url,
            audio=len(info.audio_streams),
            video=len(info.video_streams),
            video_only=len(info.video_only_streams),
        )
        return replace(info, start_position=start_position)

    def is_loading(self, url_or_id: str) -> bool:
        return self._loading.is_loading(self._extractor.canonical_url(url_or_id))

    def set_fetch_ios_client(self, enabled: bool) -> None:
        self._extractor.set_fetch_ios_client(enabled)

    def set_po_token_provider(self, provider: PoTokenProviderPort | None) -> None:
        self._extractor.set_po_token_provider(provider)

    async def trim_cache(self) -> None:
        """Drop expired results and shrink the result cache to its trim size."""
        await self._cache.trim()

    async def clear_all_caches(self) -> None:
        """Forget results, the player script and every deobfuscation result."""
        await self._cache.clear()
        await self._extractor.clear_caches()
