"""JSON presenter for extraction results."""

from __future__ import annotations

from typing import Any

from tubegarr.domain.entities.streams import AudioStream, Stream, StreamInfo, VideoStream
from tubegarr.domain.exceptions import (
    AgeRestricted,
    ContentUnavailable,
    ExtractionError,
    GeoRestricted,
    MalformedUpstreamData,
    PaidOrMembersOnly,
    PrivateContent,
    RateLimited,
    ResponseIdentityMismatch,
)

# Most specific first: DeobfuscationFailed is a MalformedUpstreamData.
_STATUS_BY_ERROR: tuple[tuple[type[ExtractionError], int], ...] = (
    (ContentUnavailable, 404),
    (AgeRestricted, 403),
    (GeoRestricted, 403),
    (PrivateContent, 403),
    (PaidOrMembersOnly, 403),
    (RateLimited, 429),
    (ResponseIdentityMismatch, 409),
    (MalformedUpstreamData, 502),
)


def status_code_for(error: ExtractionError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 502


def render_error(error: ExtractionError) -> dict[str, str]:
    return {"kind": error.kind, "reason": error.reason}


def _render_stream(stream: Stream) -> dict[str, Any]:
    fmt = stream.format
    data: dict[str, Any] = {
        "itag": stream.itag,
        "url": stream.content,
        "is_url": stream.is_url,
        "delivery_method": stream.delivery_method.value,
        "mime_type": fmt.media_format.mime_type,
        "codec": fmt.codec,
        "bitrate": fmt.bitrate,
        "content_length": fmt.content_length,
    }
    if isinstance(stream, AudioStream):
        data.update(
            average_bitrate=stream.average_bitrate,
            sample_rate=fmt.sample_rate,
            audio_channels=fmt.audio_channels,
            audio_track_id=stream.audio_track_id,
            audio_track_name=stream.audio_track_name,
            audio_locale=stream.audio_locale,
            audio_track_type=(
                stream.audio_track_type.value if stream.audio_track_type else None
            ),
        )
    elif isinstance(stream, VideoStream):
        data.update(
            resolution=stream.resolution,
            fps=fmt.fps,
            width=fmt.width,
            height=fmt.height,
            video_only=stream.is_video_only,
        )
    return data


def render_stream_info(info: StreamInfo) -> dict[str, Any]:
    return {
        "id": info.id,
        "url": info.url,
        "name": info.name,
        "stream_type": info.stream_type.value,
        "duration": info.duration,
        "uploader_name": info.uploader_name,
        "uploader_url": info.uploader_url,
        "description": info.description,
        "category": info.category,
        "view_count": info.view_count,
        "age_limit": info.age_limit,
        "start_position": info.start_position,
        "tags": list(info.tags),
        "thumbnails": [
            {"url": t.url, "width": t.width, "height": t.height} for t in info.thumbnails
        ],
        "audio_streams": [_render_stream(s) for s in info.audio_streams],
        "video_streams": [_render_stream(s) for s in info.video_streams],
        "video_only_streams": [_render_stream(s) for s in info.video_only_streams],
        "dash_mpd_url": info.dash_mpd_url,
        "hls_url": info.hls_url,
        "errors": list(info.errors),
    }
