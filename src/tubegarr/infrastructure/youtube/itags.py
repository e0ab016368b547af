"""Static catalog of known format identifiers (itags)."""

from __future__ import annotations

from tubegarr.domain.entities.formats import (
    FormatDescriptor,
    ItagType,
    MediaFormat,
)
from tubegarr.domain.exceptions import MalformedUpstreamData

_A = ItagType.AUDIO
_V = ItagType.VIDEO
_VO = ItagType.VIDEO_ONLY

_MP4 = MediaFormat.MPEG_4
_3GP = MediaFormat.V3GPP
_WEBM = MediaFormat.WEBM
_M4A = MediaFormat.M4A
_WEBMA = MediaFormat.WEBMA
_OPUS = MediaFormat.WEBMA_OPUS


def _video(itag: int, fmt: MediaFormat, resolution: str, fps: int = 30) -> FormatDescriptor:
    return FormatDescriptor(itag, _V, fmt, resolution=resolution, fps=fps)


def _video_only(
    itag: int, fmt: MediaFormat, resolution: str, fps: int = 30
) -> FormatDescriptor:
    return FormatDescriptor(itag, _VO, fmt, resolution=resolution, fps=fps)


def _audio(itag: int, fmt: MediaFormat, avg_bitrate: int) -> FormatDescriptor:
    return FormatDescriptor(itag, _A, fmt, avg_bitrate=avg_bitrate)


_CATALOG: tuple[FormatDescriptor, ...] = (
    # Progressive video (muxed audio)
    _video(17, _3GP, "144p"),
    _video(36, _3GP, "240p"),
    _video(18, _MP4, "360p"),
    _video(34, _MP4, "360p"),
    _video(35, _MP4, "480p"),
    _video(59, _MP4, "480p"),
    _video(78, _MP4, "480p"),
    _video(22, _MP4, "720p"),
    _video(37, _MP4, "1080p"),
    _video(38, _MP4, "1080p"),
    _video(43, _WEBM, "360p"),
    _video(44, _WEBM, "480p"),
    _video(45, _WEBM, "720p"),
    _video(46, _WEBM, "1080p"),
    # Audio only
    _audio(171, _WEBMA, 128),
    _audio(172, _WEBMA, 256),
    _audio(599, _M4A, 32),
    _audio(139, _M4A, 48),
    _audio(140, _M4A, 128),
    _audio(141, _M4A, 256),
    _audio(600, _OPUS, 35),
    _audio(249, _OPUS, 50),
    _audio(250, _OPUS, 70),
    _audio(251, _OPUS, 160),
    # Video only, MPEG-4
    _video_only(160, _MP4, "144p"),
    _video_only(394, _MP4, "144p"),
    _video_only(133, _MP4, "240p"),
    _video_only(395, _MP4, "240p"),
    _video_only(134, _MP4, "360p"),
    _video_only(396, _MP4, "360p"),
    _video_only(135, _MP4, "480p"),
    _video_only(212, _MP4, "480p"),
    _video_only(397, _MP4, "480p"),
    _video_only(136, _MP4, "720p"),
    _video_only(398, _MP4, "720p"),
    _video_only(298, _MP4, "720p60", 60),
    _video_only(137, _MP4, "1080p"),
    _video_only(399, _MP4, "1080p"),
    _video_only(299, _MP4, "1080p60", 60),
    _video_only(400, _MP4, "1440p"),
    _video_only(266, _MP4, "2160p"),
    _video_only(401, _MP4, "2160p"),
    # Video only, WebM
    _video_only(278, _WEBM, "144p"),
    _video_only(242, _WEBM, "240p"),
    _video_only(243, _WEBM, "360p"),
    _video_only(244, _WEBM, "480p"),
    _video_only(245, _WEBM, "480p"),
    _video_only(246, _WEBM, "480p"),
    _video_only(247, _WEBM, "720p"),
    _video_only(248, _WEBM, "1080p"),
    _video_only(271, _WEBM, "1440p"),
    _video_only(272, _WEBM, "2160p"),
    _video_only(302, _WEBM, "720p60", 60),
    _video_only(303, _WEBM, "1080p60", 60),
    _video_only(308, _WEBM, "1440p60", 60),
    _video_only(313, _WEBM, "2160p"),
    _video_only(315, _WEBM, "2160p60", 60),
)

ITAG_CATALOG: dict[int, FormatDescriptor] = {item.id: item for item in _CATALOG}


def is_supported(itag: int) -> bool:
    return itag in ITAG_CATALOG


def lookup(itag: int) -> FormatDescriptor:
    """Return the catalog entry for ``itag``.

    Raises:
        MalformedUpstreamData: the id is not in the catalog.
    """
    try:
        return ITAG_CATALOG[itag]
    except KeyError:
        raise MalformedUpstreamData(f"itag {itag} is not supported") from None
