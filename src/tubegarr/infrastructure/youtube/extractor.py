"""YouTube implementation of the stream extractor port."""

from __future__ import annotations

import structlog

from tubegarr.domain.entities.streams import StreamInfo
from tubegarr.domain.exceptions import ContentUnavailable, DeobfuscationFailed
from tubegarr.domain.ports.po_token import PoTokenProviderPort
from tubegarr.infrastructure.common import json_utils
from tubegarr.infrastructure.youtube import link_handler, metadata
from tubegarr.infrastructure.youtube.assembler import ADAPTIVE_FORMATS, StreamAssembler
from tubegarr.infrastructure.youtube.orchestrator import (
    PlayerResponseOrchestrator,
    PlayerResponses,
)
from tubegarr.infrastructure.youtube.player_manager import PlayerScriptManager

log = structlog.get_logger(__name__)

YOUTUBE_SERVICE_ID = 0


def _duration_fallback(responses: PlayerResponses) -> int:
    """Seconds from the first adaptive format's ``approxDurationMs``."""
    for descriptor in responses.descriptors:
        for data in descriptor.streaming_data.get(ADAPTIVE_FORMATS) or []:
            duration_ms = json_utils.get_int(data, "approxDurationMs")
            if duration_ms > 0:
                return duration_ms // 1000
    return -1


class YoutubeStreamExtractor:
    service_id = YOUTUBE_SERVICE_ID

    def __init__(
        self,
        orchestrator: PlayerResponseOrchestrator,
        assembler: StreamAssembler,
        player_manager: PlayerScriptManager,
    ) -> None:
        self._orchestrator = orchestrator
        self._assembler = assembler
        self._player_manager = player_manager

    def canonical_url(self, url_or_id: str) -> str:
        return link_handler.canonical_url(link_handler.extract_video_id(url_or_id))

    def start_position(self, url_or_id: str) -> int:
        return link_handler.parse_start_position(url_or_id)

    def set_fetch_ios_client(self, enabled: bool) -> None:
        self._orchestrator.fetch_ios = enabled

    def set_po_token_provider(self, provider: PoTokenProviderPort | None) -> None:
        self._orchestrator.po_token_provider = provider

    async def clear_caches(self) -> None:
        await self._player_manager.clear_all_caches()

    async def extract(self, url: str) -> StreamInfo:
        """Fetch, assemble and describe one video.

        Raises:
            DeobfuscationFailed: no stream survived because deobfuscation failed.
            ContentUnavailable: the clients returned no playable stream at all.
            ExtractionError: every stream was lost to another upstream error
                (the first one is raised).
        """
        video_id = link_handler.extract_video_id(url)
        responses = await self._orchestrator.fetch(video_id)
        streams = await self._assembler.assemble(
            video_id, responses.descriptors, responses.stream_type
        )

        if streams.is_empty:
            if streams.dropped:
                raise DeobfuscationFailed(
                    f"All {streams.dropped} streams failed deobfuscation"
                )
            if streams.skipped:
                raise streams.skipped[0]
            raise ContentUnavailable("No playable streams")

        meta = metadata.parse_metadata(
            responses.player_response,
            responses.next_response,
            age_restricted=responses.age_restricted,
        )
        errors = list(responses.errors)
        if streams.dropped:
            errors.append(f"{streams.dropped} streams dropped: deobfuscation failed")
        if streams.skipped:
            errors.append(
                f"{len(streams.skipped)} streams skipped: {streams.skipped[0].reason}"
            )

        return StreamInfo(
            id=video_id,
            url=link_handler.canonical_url(video_id),
            name=meta.title,
            stream_type=responses.stream_type,
            audio_streams=streams.audio_streams,
            video_streams=streams.video_streams,
            video_only_streams=streams.video_only_streams,
            dash_mpd_url=streams.dash_mpd_url,
            hls_url=streams.hls_url,
            duration=meta.duration if meta.duration > 0 else _duration_fallback(responses),
            uploader_name=meta.uploader_name,
            uploader_url=meta.uploader_url,
            description=meta.description,
            category=meta.category,
            view_count=meta.view_count,
            age_limit=meta.age_limit,
            start_position=link_handler.parse_start_position(url),
            tags=meta.tags,
            thumbnails=meta.thumbnails,
            errors=errors,
        )
