"""Stream info endpoints."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from tubegarr.domain.exceptions import ExtractionError
from tubegarr.interfaces.api.streams.presenter import (
    render_error,
    render_stream_info,
    status_code_for,
)
from tubegarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["streams"])


@router.get("/streams/{video_id}")
async def get_stream_info(
    video_id: str,
    request: Request,
    force: bool = False,
) -> dict[str, Any]:
    """Extract (or serve from cache) the streams of one video.

    Raises:
        HTTPException: mapped from the extraction error kind
            (404 unavailable, 403 gated, 429 rate limited,
            409 identity mismatch, 502 upstream/deobfuscation).
    """
    state = cast(AppState, request.app.state)

    log.info("stream_info_request", video_id=video_id, force=force)
    try:
        info = await state.stream_info_uc.fetch_stream_info(video_id, force_load=force)
    except ExtractionError as e:
        status = status_code_for(e)
        log.warning(
            "stream_info_failed",
            video_id=video_id,
            kind=e.kind,
            reason=e.reason,
            status_code=status,
        )
        raise HTTPException(status_code=status, detail=render_error(e)) from e

    return render_stream_info(info)


@router.delete("/caches")
async def clear_caches(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    await state.stream_info_uc.clear_all_caches()
    log.info("caches_cleared_via_api")
    return JSONResponse({"status": "cleared"})


@router.post("/caches/trim")
async def trim_caches(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)
    await state.stream_info_uc.trim_cache()
    log.info("result_cache_trimmed_via_api")
    return JSONResponse({"status": "trimmed"})
