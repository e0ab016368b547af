"""Format descriptors (itags) and their per-occurrence enrichment.

Pure value objects: no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

# Sentinels used by the backend (and by us) for unknown numeric values.
UNKNOWN = -1
CONTENT_LENGTH_UNKNOWN = -1
APPROX_DURATION_MS_UNKNOWN = -1
DEFAULT_VIDEO_FPS = 30
DEFAULT_AUDIO_CHANNELS = 2


class ItagType(Enum):
    AUDIO = "audio"
    VIDEO = "video"
    VIDEO_ONLY = "video_only"


class MediaFormat(Enum):
    """Container families a format identifier can map to."""

    MPEG_4 = (0x0, "MPEG-4", "mp4", "video/mp4")
    V3GPP = (0x10, "3GPP", "3gp", "video/3gpp")
    WEBM = (0x20, "WebM", "webm", "video/webm")
    M4A = (0x100, "m4a", "m4a", "audio/mp4")
    WEBMA = (0x200, "WebM", "webm", "audio/webm")
    WEBMA_OPUS = (0x200, "WebM Opus", "webm", "audio/webm")

    def __init__(
        self, format_id: int, display_name: str, suffix: str, mime_type: str
    ) -> None:
        self.format_id = format_id
        self.display_name = display_name
        self.suffix = suffix
        self.mime_type = mime_type


class AudioTrackType(Enum):
    ORIGINAL = "original"
    DUBBED = "dubbed"
    DESCRIPTIVE = "descriptive"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class FormatDescriptor:
    """Static catalog entry for one format identifier (itag).

    ``resolution`` is only set for video types, ``avg_bitrate`` (kbit/s)
    only for audio.
    """

    id: int
    item_type: ItagType
    media_format: MediaFormat
    resolution: str | None = None
    fps: int = UNKNOWN
    avg_bitrate: int = UNKNOWN


@dataclass(frozen=True)
class EnrichedFormat:
    """A catalog entry combined with the fields of one concrete occurrence.

    Built once per stream through :meth:`from_descriptor`; the catalog
    entry itself is never touched.
    """

    descriptor: FormatDescriptor
    bitrate: int = UNKNOWN
    width: int = UNKNOWN
    height: int = UNKNOWN
    fps: int = UNKNOWN
    init_start: int = UNKNOWN
    init_end: int = UNKNOWN
    index_start: int = UNKNOWN
    index_end: int = UNKNOWN
    quality: str | None = None
    codec: str | None = None
    target_duration_sec: int = UNKNOWN
    sample_rate: int = UNKNOWN
    audio_channels: int = UNKNOWN
    audio_track_id: str | None = None
    audio_track_name: str | None = None
    audio_locale: str | None = None
    audio_track_type: AudioTrackType | None = None
    content_length: int = CONTENT_LENGTH_UNKNOWN
    approx_duration_ms: int = APPROX_DURATION_MS_UNKNOWN

    @classmethod
    def from_descriptor(cls, descriptor: FormatDescriptor, **occurrence: object) -> EnrichedFormat:
        """Build an enriched format, defaulting ``fps`` to the catalog value."""
        occurrence.setdefault("fps", descriptor.fps)
        return cls(descriptor=descriptor, **occurrence)  # type: ignore[arg-type]

    @property
    def id(self) -> int:
        return self.descriptor.id

    @property
    def item_type(self) -> ItagType:
        return self.descriptor.item_type

    @property
    def media_format(self) -> MediaFormat:
        return self.descriptor.media_format

    @property
    def resolution(self) -> str | None:
        """Height-based label (``720p60``) when known, else the catalog default."""
        if self.height > 0:
            label = f"{self.height}p"
            if self.fps > DEFAULT_VIDEO_FPS:
                label += str(self.fps)
            return label
        return self.descriptor.resolution

    @property
    def avg_bitrate(self) -> int:
        return self.descriptor.avg_bitrate
