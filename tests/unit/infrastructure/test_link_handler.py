"""Tests for video id and start position parsing."""

from __future__ import annotations

import pytest

from tubegarr.domain.exceptions import MalformedUpstreamData
from tubegarr.infrastructure.youtube import itags, link_handler
from tubegarr.domain.entities.formats import ItagType, MediaFormat


class TestExtractVideoId:
    @pytest.mark.parametrize(
        "url",
        [
            "dQw4w9WgXcQ",
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ&t=42",
            "youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ?t=10",
            "https://www.youtube.com/shorts/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ",
            "https://music.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/live/dQw4w9WgXcQ",
        ],
    )
    def test_supported_shapes(self, url: str) -> None:
        assert link_handler.extract_video_id(url) == "dQw4w9WgXcQ"

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/watch?v=short",
            "https://www.youtube.com/channel/UCuAXFkgsw1L7xaCfnd5JJOw",
            "",
        ],
    )
    def test_rejected(self, url: str) -> None:
        with pytest.raises(MalformedUpstreamData):
            link_handler.extract_video_id(url)

    def test_canonical_url(self) -> None:
        assert (
            link_handler.canonical_url("dQw4w9WgXcQ")
            == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        )


class TestStartPosition:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", 0),
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=90", 90),
            ("https://youtu.be/dQw4w9WgXcQ?t=1m30s", 90),
            ("https://youtu.be/dQw4w9WgXcQ?t=1h2m3s", 3723),
            ("https://www.youtube.com/embed/dQw4w9WgXcQ?start=15", 15),
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ#t=20", 20),
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=garbage", 0),
        ],
    )
    def test_parse(self, url: str, expected: int) -> None:
        assert link_handler.parse_start_position(url) == expected


class TestItagCatalog:
    def test_lookup_known(self) -> None:
        descriptor = itags.lookup(140)
        assert descriptor.item_type is ItagType.AUDIO
        assert descriptor.media_format is MediaFormat.M4A
        assert descriptor.avg_bitrate == 128

    def test_progressive_and_video_only(self) -> None:
        assert itags.lookup(18).item_type is ItagType.VIDEO
        assert itags.lookup(137).item_type is ItagType.VIDEO_ONLY
        assert itags.lookup(299).fps == 60

    def test_unknown(self) -> None:
        assert not itags.is_supported(9999)
        with pytest.raises(MalformedUpstreamData, match="9999"):
            itags.lookup(9999)
