"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from tubegarr.application.use_cases import StreamInfoUseCase
from tubegarr.infrastructure.cache import LoadingGuard, ResultCache, TtlPolicy
from tubegarr.infrastructure.common.rate_limiter import HostRateLimiter
from tubegarr.infrastructure.common.retry_transport import RetryTransport
from tubegarr.infrastructure.config.schema import AppConfig
from tubegarr.infrastructure.http.httpx_transport import HttpxTransport
from tubegarr.infrastructure.script.dukpy_runner import DukpyScriptRunner
from tubegarr.infrastructure.youtube import (
    YOUTUBE_SERVICE_ID,
    InnertubeClient,
    PlayerResponseOrchestrator,
    PlayerScriptFetcher,
    PlayerScriptManager,
    StreamAssembler,
    YoutubeStreamExtractor,
)
from tubegarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_http_client(config: AppConfig) -> httpx.AsyncClient:
    """Shared client with per-host rate limiting and 502/503/504 retry."""
    rate_limiter = HostRateLimiter(
        requests_per_second=config.http_rate_limit_rps,
        burst=config.http_rate_limit_burst,
    )
    transport = RetryTransport(
        wrapped=httpx.AsyncHTTPTransport(),
        rate_limiter=rate_limiter,
        max_retries=config.http_max_retries,
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=config.http_follow_redirects,
    )


def build_stream_info_use_case(
    config: AppConfig, http_client: httpx.AsyncClient
) -> StreamInfoUseCase:
    """Wire the extraction engine on top of ``http_client``.

    Order matters:
        1. Transport (wraps the shared client)
        2. Player script manager (fetcher + JS runner)
        3. Innertube client, orchestrator, assembler
        4. Result cache + loading guard
    """
    transport = HttpxTransport(http_client)

    player_manager = PlayerScriptManager(
        PlayerScriptFetcher(transport), DukpyScriptRunner()
    )
    innertube = InnertubeClient(
        transport,
        discover_client_version=config.youtube_discover_client_version,
    )
    orchestrator = PlayerResponseOrchestrator(
        innertube,
        player_manager,
        fetch_ios=config.youtube_fetch_ios,
        hl=config.youtube_hl,
        gl=config.youtube_gl,
    )
    extractor = YoutubeStreamExtractor(
        orchestrator, StreamAssembler(player_manager), player_manager
    )

    cache = ResultCache(
        max_items=config.cache_max_items,
        trim_to=config.cache_trim_to,
        ttl_policy=TtlPolicy(
            default_seconds=config.cache_ttl_seconds,
            per_service={YOUTUBE_SERVICE_ID: config.cache_ttl_seconds},
        ),
    )
    log.info(
        "stream_info_use_case_initialized",
        fetch_ios=config.youtube_fetch_ios,
        cache_max_items=config.cache_max_items,
    )
    return StreamInfoUseCase(extractor=extractor, cache=cache, loading=LoadingGuard())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root)."""
    state = cast(AppState, app.state)
    config = state.config

    state.http_client = build_http_client(config)
    log.info(
        "http_client_initialized",
        rate_limit_rps=config.http_rate_limit_rps,
        max_retries=config.http_max_retries,
    )

    state.stream_info_uc = build_stream_info_use_case(config, state.http_client)

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
