"""Tests for StreamInfoUseCase: cache, single-flight and cache control."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from tubegarr.application.use_cases import StreamInfoUseCase
from tubegarr.domain.entities.cache import CacheKey
from tubegarr.domain.entities.streams import StreamInfo, StreamType
from tubegarr.domain.exceptions import ContentUnavailable, MalformedUpstreamData
from tubegarr.infrastructure.cache import LoadingGuard, ResultCache
from tubegarr.infrastructure.youtube import link_handler

_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


def _info(name: str = "first") -> StreamInfo:
    return StreamInfo(
        id="dQw4w9WgXcQ", url=_URL, name=name, stream_type=StreamType.VIDEO_STREAM
    )


def _extractor(*results: StreamInfo | Exception) -> MagicMock:
    extractor = MagicMock()
    extractor.service_id = 0
    extractor.canonical_url.side_effect = lambda u: link_handler.canonical_url(
        link_handler.extract_video_id(u)
    )
    extractor.start_position.side_effect = link_handler.parse_start_position
    extractor.extract = AsyncMock(side_effect=list(results))
    extractor.clear_caches = AsyncMock()
    return extractor


def _use_case(extractor: MagicMock, cache: ResultCache | None = None) -> StreamInfoUseCase:
    return StreamInfoUseCase(
        extractor=extractor, cache=cache or ResultCache(), loading=LoadingGuard()
    )


class TestStreamInfoUseCase:
    @pytest.mark.asyncio()
    async def test_extracts_and_caches(self) -> None:
        extractor = _extractor(_info())
        uc = _use_case(extractor)

        first = await uc.fetch_stream_info("dQw4w9WgXcQ")
        second = await uc.fetch_stream_info("https://youtu.be/dQw4w9WgXcQ")

        assert first.name == second.name == "first"
        extractor.extract.assert_awaited_once_with(_URL)

    @pytest.mark.asyncio()
    async def test_start_position_per_request(self) -> None:
        uc = _use_case(_extractor(_info()))
        first = await uc.fetch_stream_info(_URL + "&t=30")
        second = await uc.fetch_stream_info(_URL)
        assert first.start_position == 30
        assert second.start_position == 0

    @pytest.mark.asyncio()
    async def test_force_load_bypasses_cache(self) -> None:
        extractor = _extractor(_info("first"), _info("second"))
        uc = _use_case(extractor)

        await uc.fetch_stream_info(_URL)
        refreshed = await uc.fetch_stream_info(_URL, force_load=True)
        cached = await uc.fetch_stream_info(_URL)

        assert refreshed.name == "second"
        assert cached.name == "second"
        assert extractor.extract.await_count == 2

    @pytest.mark.asyncio()
    async def test_errors_not_cached(self) -> None:
        extractor = _extractor(ContentUnavailable("Video unavailable"), _info())
        uc = _use_case(extractor)

        with pytest.raises(ContentUnavailable):
            await uc.fetch_stream_info(_URL)
        assert (await uc.fetch_stream_info(_URL)).name == "first"

    @pytest.mark.asyncio()
    async def test_invalid_link(self) -> None:
        extractor = _extractor()
        uc = _use_case(extractor)
        with pytest.raises(MalformedUpstreamData):
            await uc.fetch_stream_info("https://example.com/nothing")
        extractor.extract.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_concurrent_requests_share_extraction(self) -> None:
        release = asyncio.Event()
        extractor = _extractor()

        async def slow_extract(url: str) -> StreamInfo:
            await release.wait()
            return _info()

        extractor.extract = AsyncMock(side_effect=slow_extract)
        uc = _use_case(extractor)

        tasks = [asyncio.create_task(uc.fetch_stream_info(_URL)) for _ in range(3)]
        await asyncio.sleep(0)
        assert uc.is_loading("dQw4w9WgXcQ")
        release.set()
        results = await asyncio.gather(*tasks)

        assert {r.name for r in results} == {"first"}
        assert extractor.extract.await_count == 1
        assert not uc.is_loading(_URL)

    @pytest.mark.asyncio()
    async def test_clear_all_caches(self) -> None:
        cache = ResultCache()
        extractor = _extractor(_info("first"), _info("second"))
        uc = _use_case(extractor, cache)

        await uc.fetch_stream_info(_URL)
        await uc.clear_all_caches()

        assert await cache.get(CacheKey(0, _URL)) is None
        extractor.clear_caches.assert_awaited_once()
        assert (await uc.fetch_stream_info(_URL)).name == "second"

    def test_settings_forwarded(self) -> None:
        extractor = _extractor()
        uc = _use_case(extractor)
        provider = MagicMock()

        uc.set_fetch_ios_client(True)
        uc.set_po_token_provider(provider)

        extractor.set_fetch_ios_client.assert_called_once_with(True)
        extractor.set_po_token_provider.assert_called_once_with(provider)


class TestResultCapacity:
    @staticmethod
    def _video_ids(count: int) -> list[str]:
        return [f"vid{n:08d}" for n in range(count)]

    @pytest.mark.asyncio()
    async def test_loads_keep_results_up_to_max_items(self) -> None:
        cache = ResultCache(max_items=60, trim_to=30)
        extractor = _extractor()
        extractor.extract = AsyncMock(side_effect=lambda url: _info(url))
        uc = _use_case(extractor, cache)

        for video_id in self._video_ids(40):
            await uc.fetch_stream_info(video_id)

        assert await cache.size() == 40
        await uc.fetch_stream_info("vid00000000")
        assert extractor.extract.await_count == 40

    @pytest.mark.asyncio()
    async def test_trim_cache(self) -> None:
        cache = ResultCache(max_items=60, trim_to=30)
        extractor = _extractor()
        extractor.extract = AsyncMock(side_effect=lambda url: _info(url))
        uc = _use_case(extractor, cache)

        for video_id in self._video_ids(40):
            await uc.fetch_stream_info(video_id)
        await uc.trim_cache()

        assert await cache.size() == 30
