"""Tests for format enrichment, stream identity and the error hierarchy."""

from __future__ import annotations

import pytest

from tubegarr.domain.entities.formats import (
    EnrichedFormat,
    FormatDescriptor,
    ItagType,
    MediaFormat,
)
from tubegarr.domain.entities.streams import (
    AudioStream,
    DeliveryMethod,
    StreamInfo,
    StreamType,
    VideoStream,
    contains_similar_stream,
)
from tubegarr.domain.exceptions import (
    AgeRestricted,
    ContentUnavailable,
    DeobfuscationFailed,
    ExtractionError,
    MalformedUpstreamData,
    ResponseIdentityMismatch,
)

_VIDEO_ONLY_1080 = FormatDescriptor(137, ItagType.VIDEO_ONLY, MediaFormat.MPEG_4, "1080p")
_AUDIO_128 = FormatDescriptor(140, ItagType.AUDIO, MediaFormat.M4A, avg_bitrate=128)


def _video(url: str, *, is_url: bool = True, delivery=DeliveryMethod.PROGRESSIVE_HTTP):
    return VideoStream(
        id="137",
        content=url,
        is_url=is_url,
        format=EnrichedFormat.from_descriptor(_VIDEO_ONLY_1080),
        delivery_method=delivery,
        resolution="1080p",
        is_video_only=True,
    )


class TestEnrichedFormat:
    def test_fps_defaults_to_catalog(self) -> None:
        enriched = EnrichedFormat.from_descriptor(_VIDEO_ONLY_1080)
        assert enriched.fps == 30
        assert enriched.id == 137
        assert enriched.item_type is ItagType.VIDEO_ONLY

    def test_catalog_entry_untouched(self) -> None:
        EnrichedFormat.from_descriptor(_VIDEO_ONLY_1080, height=720, fps=60)
        assert _VIDEO_ONLY_1080.resolution == "1080p"
        assert _VIDEO_ONLY_1080.fps == 30

    def test_resolution_from_height(self) -> None:
        enriched = EnrichedFormat.from_descriptor(_VIDEO_ONLY_1080, height=1080, fps=60)
        assert enriched.resolution == "1080p60"

    def test_resolution_without_height_uses_catalog(self) -> None:
        enriched = EnrichedFormat.from_descriptor(_VIDEO_ONLY_1080)
        assert enriched.resolution == "1080p"

    def test_audio_has_no_resolution(self) -> None:
        enriched = EnrichedFormat.from_descriptor(_AUDIO_128)
        assert enriched.resolution is None
        assert enriched.avg_bitrate == 128


class TestStreamIdentity:
    def test_same_itag_different_url_is_similar(self) -> None:
        a = _video("https://a.example/1")
        b = _video("https://b.example/2")
        assert a.dedup_key == b.dedup_key
        assert contains_similar_stream(b, [a])

    def test_delivery_method_distinguishes(self) -> None:
        a = _video("https://a.example/1")
        b = _video("https://a.example/1", delivery=DeliveryMethod.DASH)
        assert not contains_similar_stream(b, [a])

    def test_is_url_distinguishes(self) -> None:
        a = _video("https://a.example/1")
        b = _video("ref", is_url=False)
        assert not contains_similar_stream(b, [a])

    def test_empty_list(self) -> None:
        assert not contains_similar_stream(_video("x"), [])

    def test_audio_stream_itag(self) -> None:
        stream = AudioStream(
            id="140",
            content="https://a.example/audio",
            is_url=True,
            format=EnrichedFormat.from_descriptor(_AUDIO_128),
            average_bitrate=128,
        )
        assert stream.itag == 140
        assert stream.media_format is MediaFormat.M4A


class TestStreamInfo:
    def test_has_streams_with_manifest_only(self) -> None:
        info = StreamInfo(
            id="x", url="u", name="n", stream_type=StreamType.LIVE_STREAM, hls_url="h"
        )
        assert info.has_streams

    def test_has_no_streams(self) -> None:
        info = StreamInfo(id="x", url="u", name="n", stream_type=StreamType.VIDEO_STREAM)
        assert not info.has_streams


class TestExceptions:
    def test_deobfuscation_is_malformed_data(self) -> None:
        err = DeobfuscationFailed("boom")
        assert isinstance(err, MalformedUpstreamData)
        assert isinstance(err, ExtractionError)
        assert err.kind == "deobfuscation_failed"
        assert err.reason == "boom"

    @pytest.mark.parametrize(
        "cls",
        [ContentUnavailable, AgeRestricted, ResponseIdentityMismatch],
    )
    def test_denials_are_not_malformed(self, cls: type[ExtractionError]) -> None:
        assert not issubclass(cls, MalformedUpstreamData)
        assert issubclass(cls, ExtractionError)

    def test_str_is_reason(self) -> None:
        assert str(AgeRestricted("Sign in to confirm your age")) == (
            "Sign in to confirm your age"
        )
