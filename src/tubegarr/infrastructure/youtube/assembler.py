"""Turns client streaming data into deduplicated stream lists."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, quote

import structlog

from tubegarr.domain.entities.formats import (
    DEFAULT_AUDIO_CHANNELS,
    AudioTrackType,
    EnrichedFormat,
    FormatDescriptor,
    ItagType,
)
from tubegarr.domain.entities.streams import (
    AudioStream,
    DeliveryMethod,
    RawStreamingDescriptor,
    Stream,
    StreamType,
    VideoStream,
    contains_similar_stream,
)
from tubegarr.domain.exceptions import DeobfuscationFailed, ExtractionError
from tubegarr.infrastructure.common import json_utils
from tubegarr.infrastructure.youtube import itags
from tubegarr.infrastructure.youtube.clients import ANDROID, IOS
from tubegarr.infrastructure.youtube.player_manager import PlayerScriptManager

log = structlog.get_logger(__name__)

FORMATS = "formats"
ADAPTIVE_FORMATS = "adaptiveFormats"
OTF_STREAM_TYPE = "FORMAT_STREAM_TYPE_OTF"
DASH_MANIFEST_SUFFIX = "mpd_version=7"

# (itag type, streaming data list it is read from)
_PASSES: tuple[tuple[ItagType, str], ...] = (
    (ItagType.AUDIO, ADAPTIVE_FORMATS),
    (ItagType.VIDEO, FORMATS),
    (ItagType.VIDEO_ONLY, ADAPTIVE_FORMATS),
)

_AUDIO_TRACK_TYPES = {
    "original": AudioTrackType.ORIGINAL,
    "dubbed": AudioTrackType.DUBBED,
    "dubbed-auto": AudioTrackType.DUBBED,
    "descriptive": AudioTrackType.DESCRIPTIVE,
    "secondary": AudioTrackType.SECONDARY,
}


@dataclass
class AssembledStreams:
    audio_streams: list[AudioStream] = field(default_factory=list)
    video_streams: list[VideoStream] = field(default_factory=list)
    video_only_streams: list[VideoStream] = field(default_factory=list)
    dash_mpd_url: str = ""
    hls_url: str = ""
    dropped: int = 0
    # Streams lost to other upstream errors, e.g. the player script download.
    skipped: list[ExtractionError] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.audio_streams or self.video_streams or self.video_only_streams)


def audio_track_type_from_url(url: str) -> AudioTrackType | None:
    """Read the ``acont`` entry of the ``xtags`` query parameter."""
    query = url.split("?", 1)[1] if "?" in url else ""
    xtags = parse_qs(query).get("xtags")
    if not xtags:
        return None
    for tag in xtags[0].split(":"):
        key, _, value = tag.partition("=")
        if key == "acont":
            return _AUDIO_TRACK_TYPES.get(value)
    return None


def with_manifest_params(url: str, token: str | None, suffix: str) -> str:
    params = []
    if token:
        params.append(f"pot={token}")
    if suffix:
        params.append(suffix)
    if not params:
        return url
    separator = "&" if "?" in url else "?"
    return url + separator + "&".join(params)


def _enrich(
    descriptor: FormatDescriptor, data: dict[str, Any], url: str
) -> EnrichedFormat:
    occurrence: dict[str, Any] = {
        "bitrate": json_utils.get_int(data, "bitrate"),
        "width": json_utils.get_int(data, "width"),
        "height": json_utils.get_int(data, "height"),
        "init_start": json_utils.get_int(data, "initRange.start"),
        "init_end": json_utils.get_int(data, "initRange.end"),
        "index_start": json_utils.get_int(data, "indexRange.start"),
        "index_end": json_utils.get_int(data, "indexRange.end"),
        "quality": json_utils.get_string(data, "quality"),
        "target_duration_sec": json_utils.get_int(data, "targetDurationSec"),
        "content_length": json_utils.get_int(data, "contentLength"),
        "approx_duration_ms": json_utils.get_int(data, "approxDurationMs"),
    }
    fps = json_utils.get_int(data, "fps")
    if fps > 0:
        occurrence["fps"] = fps

    mime_type = json_utils.get_string(data, "mimeType", "") or ""
    if '"' in mime_type:
        occurrence["codec"] = mime_type.split('"')[1]

    if descriptor.item_type is ItagType.AUDIO:
        occurrence["sample_rate"] = json_utils.get_int(data, "audioSampleRate")
        occurrence["audio_channels"] = json_utils.get_int(
            data, "audioChannels", DEFAULT_AUDIO_CHANNELS
        )
        track = json_utils.get_object(data, "audioTrack")
        if track:
            track_id = json_utils.get_string(track, "id")
            occurrence["audio_track_id"] = track_id
            occurrence["audio_track_name"] = json_utils.get_string(track, "displayName")
            if track_id:
                occurrence["audio_locale"] = track_id.split(".")[0]
        occurrence["audio_track_type"] = audio_track_type_from_url(url)

    return EnrichedFormat.from_descriptor(descriptor, **occurrence)


class StreamAssembler:
    """Builds playable stream lists out of the clients' streaming data.

    Descriptors are consumed in the order given; a stream already
    provided by an earlier client is skipped.
    """

    def __init__(self, player_manager: PlayerScriptManager) -> None:
        self._player_manager = player_manager

    async def _stream_url(
        self, video_id: str, data: dict[str, Any], descriptor: RawStreamingDescriptor
    ) -> str:
        url = json_utils.get_string(data, "url")
        if not url:
            cipher_string = json_utils.get_string(data, "signatureCipher") or json_utils.get_string(
                data, "cipher"
            )
            if not cipher_string:
                raise DeobfuscationFailed("Format has neither a url nor a cipher")
            cipher = {k: v[0] for k, v in parse_qs(cipher_string).items()}
            if "url" not in cipher or "s" not in cipher:
                raise DeobfuscationFailed("Incomplete signature cipher")
            signature = await self._player_manager.deobfuscate_signature(
                video_id, cipher["s"]
            )
            url = f"{cipher['url']}&{cipher.get('sp', 'signature')}={quote(signature, safe='')}"

        url = await self._player_manager.get_url_with_throttling_parameter_deobfuscated(
            video_id, url
        )
        url += f"&cpn={descriptor.cpn}"
        if descriptor.streaming_token:
            url += f"&pot={descriptor.streaming_token}"
        return url

    def _build_stream(
        self,
        enriched: EnrichedFormat,
        url: str,
        data: dict[str, Any],
        stream_type: StreamType,
    ) -> Stream:
        if stream_type is StreamType.VIDEO_STREAM:
            is_url = json_utils.get_string(data, "type") != OTF_STREAM_TYPE
        else:
            is_url = stream_type is not StreamType.POST_LIVE_STREAM

        if stream_type in (StreamType.LIVE_STREAM, StreamType.POST_LIVE_STREAM) or not is_url:
            delivery = DeliveryMethod.DASH
        else:
            delivery = DeliveryMethod.PROGRESSIVE_HTTP

        common: dict[str, Any] = {
            "id": str(enriched.id),
            "content": url,
            "is_url": is_url,
            "format": enriched,
            "delivery_method": delivery,
        }
        if enriched.item_type is ItagType.AUDIO:
            return AudioStream(
                **common,
                average_bitrate=enriched.avg_bitrate,
                audio_track_id=enriched.audio_track_id,
                audio_track_name=enriched.audio_track_name,
                audio_locale=enriched.audio_locale,
                audio_track_type=enriched.audio_track_type,
            )
        return VideoStream(
            **common,
            resolution=enriched.resolution or "",
            is_video_only=enriched.item_type is ItagType.VIDEO_ONLY,
        )

    async def _streams_of(
        self,
        video_id: str,
        descriptor: RawStreamingDescriptor,
        wanted: ItagType,
        list_name: str,
        stream_type: StreamType,
        result: AssembledStreams,
    ) -> list[Stream]:
        streams: list[Stream] = []
        for data in descriptor.streaming_data.get(list_name) or []:
            itag = json_utils.get_int(data, "itag")
            if not itags.is_supported(itag):
                log.debug("itag_unsupported", itag=itag, client=descriptor.client)
                continue
            format_descriptor = itags.lookup(itag)
            if format_descriptor.item_type is not wanted:
                continue
            try:
                url = await self._stream_url(video_id, data, descriptor)
            except DeobfuscationFailed as e:
                result.dropped += 1
                log.warning(
                    "stream_dropped",
                    itag=itag,
                    client=descriptor.client,
                    error=e.reason,
                )
                continue
            except ExtractionError as e:
                result.skipped.append(e)
                log.warning(
                    "stream_skipped", itag=itag, client=descriptor.client, error=e.reason
                )
                continue
            enriched = _enrich(format_descriptor, data, url)
            streams.append(self._build_stream(enriched, url, data, stream_type))
        return streams

    async def assemble(
        self,
        video_id: str,
        descriptors: Sequence[RawStreamingDescriptor],
        stream_type: StreamType,
    ) -> AssembledStreams:
        result = AssembledStreams()
        targets: dict[ItagType, list[Any]] = {
            ItagType.AUDIO: result.audio_streams,
            ItagType.VIDEO: result.video_streams,
            ItagType.VIDEO_ONLY: result.video_only_streams,
        }
        for wanted, list_name in _PASSES:
            target = targets[wanted]
            for descriptor in descriptors:
                for stream in await self._streams_of(
                    video_id, descriptor, wanted, list_name, stream_type, result
                ):
                    if not contains_similar_stream(stream, target):
                        target.append(stream)

        result.dash_mpd_url = self._manifest_url(
            descriptors, "dashManifestUrl", (ANDROID.name, None), DASH_MANIFEST_SUFFIX
        )
        result.hls_url = self._manifest_url(
            descriptors, "hlsManifestUrl", (IOS.name, ANDROID.name, None), ""
        )
        log.debug(
            "streams_assembled",
            video_id=video_id,
            audio=len(result.audio_streams),
            video=len(result.video_streams),
            video_only=len(result.video_only_streams),
            dropped=result.dropped,
            skipped=len(result.skipped),
        )
        return result

    @staticmethod
    def _manifest_url(
        descriptors: Sequence[RawStreamingDescriptor],
        key: str,
        preference: tuple[str | None, ...],
        suffix: str,
    ) -> str:
        """First manifest found, by client preference (``None`` is the html5 client)."""
        mobile = (ANDROID.name, IOS.name)
        for wanted in preference:
            for descriptor in descriptors:
                is_html5 = descriptor.client not in mobile
                if (wanted is None and is_html5) or descriptor.client == wanted:
                    url = descriptor.streaming_data.get(key)
                    if isinstance(url, str) and url:
                        return with_manifest_params(url, descriptor.streaming_token, suffix)
        return ""
