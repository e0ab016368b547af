"""Stream candidates and the assembled extraction result.

Pure value objects: no framework dependencies and no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .formats import AudioTrackType, EnrichedFormat, MediaFormat


class DeliveryMethod(Enum):
    PROGRESSIVE_HTTP = "progressive_http"
    DASH = "dash"
    HLS = "hls"
    SS = "ss"
    TORRENT = "torrent"


class StreamType(Enum):
    NONE = "none"
    VIDEO_STREAM = "video_stream"
    LIVE_STREAM = "live_stream"
    POST_LIVE_STREAM = "post_live_stream"


DedupKey = tuple[int, DeliveryMethod, bool]


@dataclass(frozen=True)
class Stream:
    """A playable stream candidate.

    ``content`` is a URL when ``is_url`` is True, otherwise an opaque
    manifest-relative reference.
    """

    id: str
    content: str
    is_url: bool
    format: EnrichedFormat
    delivery_method: DeliveryMethod = DeliveryMethod.PROGRESSIVE_HTTP
    manifest_url: str | None = None

    @property
    def itag(self) -> int:
        return self.format.id

    @property
    def media_format(self) -> MediaFormat:
        return self.format.media_format

    @property
    def dedup_key(self) -> DedupKey:
        """Structural identity: two clients may sign the same stream differently."""
        return (self.format.id, self.delivery_method, self.is_url)


@dataclass(frozen=True)
class AudioStream(Stream):
    average_bitrate: int = -1
    audio_track_id: str | None = None
    audio_track_name: str | None = None
    audio_locale: str | None = None
    audio_track_type: AudioTrackType | None = None


@dataclass(frozen=True)
class VideoStream(Stream):
    resolution: str = ""
    is_video_only: bool = False


def contains_similar_stream(stream: Stream, streams: Iterable[Stream]) -> bool:
    key = stream.dedup_key
    return any(existing.dedup_key == key for existing in streams)


@dataclass(frozen=True)
class RawStreamingDescriptor:
    """Streaming data of one client response, consumed by the assembler."""

    client: str
    streaming_data: Mapping[str, Any]
    cpn: str
    streaming_token: str | None = None


@dataclass(frozen=True)
class Thumbnail:
    url: str
    width: int = -1
    height: int = -1


@dataclass(frozen=True)
class StreamInfo:
    """Fully assembled extraction result for one video."""

    id: str
    url: str
    name: str
    stream_type: StreamType
    audio_streams: list[AudioStream] = field(default_factory=list)
    video_streams: list[VideoStream] = field(default_factory=list)
    video_only_streams: list[VideoStream] = field(default_factory=list)
    dash_mpd_url: str = ""
    hls_url: str = ""
    duration: int = -1
    uploader_name: str = ""
    uploader_url: str = ""
    description: str = ""
    category: str = ""
    view_count: int = -1
    age_limit: int = 0
    start_position: int = 0
    tags: list[str] = field(default_factory=list)
    thumbnails: list[Thumbnail] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_streams(self) -> bool:
        return bool(
            self.audio_streams
            or self.video_streams
            or self.video_only_streams
            or self.dash_mpd_url
            or self.hls_url
        )
