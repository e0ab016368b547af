"""End-to-end extraction: real pipeline and script engine, scripted transport.

Every layer below the transport is real: link parsing, client
escalation, player script download, signature and throttling
deobfuscation in Duktape, stream assembly, metadata and the result cache.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import pytest
from youtube_samples import (
    IFRAME_API_JS,
    PLAYER_JS,
    PLAYER_URL,
    SIGNATURE_OUTPUT,
    SIGNATURE_TIMESTAMP,
    THROTTLING_JS,
    THROTTLING_OUTPUT,
    VIDEO_ID,
    FakeTransport,
    client_name_of,
    json_response,
    make_player_response,
    text_response,
    visitor_response,
)

from tubegarr.application.use_cases import StreamInfoUseCase
from tubegarr.domain.entities.streams import StreamType
from tubegarr.domain.exceptions import PaidOrMembersOnly, ResponseIdentityMismatch
from tubegarr.domain.ports.transport import HttpResponse
from tubegarr.infrastructure.cache import LoadingGuard, ResultCache
from tubegarr.infrastructure.script.dukpy_runner import DukpyScriptRunner
from tubegarr.infrastructure.youtube import (
    InnertubeClient,
    PlayerResponseOrchestrator,
    PlayerScriptFetcher,
    PlayerScriptManager,
    StreamAssembler,
    YoutubeStreamExtractor,
)

pytestmark = pytest.mark.e2e

_CDN = "https://rr1---sn.googlevideo.com/videoplayback"
_CIPHER_140 = (
    "s=ABCDEFGHIJKLMNOP&sp=sig"
    "&url=https%3A%2F%2Frr1---sn.googlevideo.com%2Fvideoplayback%3Fitag%3D140%26n%3Dabcdef"
)
_OTHER_ID = "aaaaaaaaaaa"

_STREAMING_DATA: dict[str, Any] = {
    "expiresInSeconds": "21540",
    "formats": [
        {
            "itag": 18,
            "url": f"{_CDN}?itag=18&n=abcdef",
            "mimeType": 'video/mp4; codecs="avc1.42001E, mp4a.40.2"',
            "width": 640,
            "height": 360,
        }
    ],
    "adaptiveFormats": [
        {
            "itag": 140,
            "signatureCipher": _CIPHER_140,
            "mimeType": 'audio/mp4; codecs="mp4a.40.2"',
            "audioSampleRate": "44100",
            "approxDurationMs": "213000",
        },
        {
            "itag": 137,
            "url": f"{_CDN}?itag=137&n=abcdef",
            "mimeType": 'video/mp4; codecs="avc1.640028"',
            "width": 1920,
            "height": 1080,
        },
    ],
}

_NEXT_RESPONSE: dict[str, Any] = {
    "responseContext": {"visitorData": "next-visitor"},
    "contents": {"twoColumnWatchNextResults": {"results": {"results": {"contents": []}}}},
}


class ScriptedYoutube:
    """Routes requests like the real hosts would, from per-client answers."""

    def __init__(
        self,
        players: dict[str, dict[str, Any]],
        *,
        player_js: str = PLAYER_JS,
    ) -> None:
        self.players = players
        self.player_js = player_js
        self.transport = FakeTransport(self)

    def __call__(self, method: str, url: str, body: dict[str, Any] | None) -> HttpResponse:
        path = urlparse(url).path
        if path == "/iframe_api":
            return text_response(IFRAME_API_JS, url=url)
        if url == PLAYER_URL:
            return text_response(self.player_js, url=url)
        if path.endswith(("/visitor_id", "/guide")):
            return visitor_response()
        if path.endswith("/reel/reel_item_watch"):
            return json_response({"error": {"code": 500, "message": "internal"}}, status=500)
        if path.endswith("/next"):
            return json_response(_NEXT_RESPONSE)
        if path.endswith("/player"):
            answer = self.players.get(client_name_of(body) or "")
            if answer is not None:
                return json_response(answer)
        return text_response("not found", status=404, url=url)

    def player_requests(self) -> int:
        return sum(
            1 for _, url, _ in self.transport.requests if urlparse(url).path.endswith("/player")
        )


def _use_case(youtube: ScriptedYoutube) -> StreamInfoUseCase:
    transport = youtube.transport
    player_manager = PlayerScriptManager(PlayerScriptFetcher(transport), DukpyScriptRunner())
    orchestrator = PlayerResponseOrchestrator(InnertubeClient(transport), player_manager)
    extractor = YoutubeStreamExtractor(
        orchestrator, StreamAssembler(player_manager), player_manager
    )
    return StreamInfoUseCase(extractor=extractor, cache=ResultCache(), loading=LoadingGuard())


def _default_players(**overrides: dict[str, Any]) -> dict[str, dict[str, Any]]:
    players = {
        "WEB": make_player_response(),
        "TVHTML5": make_player_response(streaming_data=_STREAMING_DATA),
    }
    players.update(overrides)
    return players


class TestFetchStreamInfoE2E:
    @pytest.mark.asyncio()
    async def test_deobfuscated_streams(self) -> None:
        youtube = ScriptedYoutube(_default_players())
        info = await _use_case(youtube).fetch_stream_info(
            f"https://www.youtube.com/watch?v={VIDEO_ID}&t=42"
        )

        assert info.id == VIDEO_ID
        assert info.name == "Never Gonna Give You Up"
        assert info.stream_type is StreamType.VIDEO_STREAM
        assert info.start_position == 42
        assert info.duration == 213
        assert info.uploader_url.endswith("UCuAXFkgsw1L7xaCfnd5JJOw")

        tv_body = youtube.transport.bodies_for("TVHTML5")[0]
        cpn = tv_body["cpn"]
        assert len(cpn) == 16
        playback = tv_body["playbackContext"]["contentPlaybackContext"]
        assert playback["signatureTimestamp"] == SIGNATURE_TIMESTAMP

        audio = info.audio_streams[0].content
        assert audio == (
            f"{_CDN}?itag=140&n={THROTTLING_OUTPUT}&sig={SIGNATURE_OUTPUT}&cpn={cpn}"
        )
        assert info.video_only_streams[0].content == (
            f"{_CDN}?itag=137&n={THROTTLING_OUTPUT}&cpn={cpn}"
        )
        assert info.video_streams[0].content == f"{_CDN}?itag=18&n={THROTTLING_OUTPUT}&cpn={cpn}"
        assert info.video_only_streams[0].resolution == "1080p"
        assert info.errors == []

    @pytest.mark.asyncio()
    async def test_web_request_carries_no_streaming_fields(self) -> None:
        youtube = ScriptedYoutube(_default_players())
        await _use_case(youtube).fetch_stream_info(VIDEO_ID)

        web_urls = [
            url
            for _, url, body in youtube.transport.requests
            if client_name_of(body) == "WEB" and urlparse(url).path.endswith("/player")
        ]
        assert len(web_urls) == 1
        assert "$fields=" in web_urls[0]
        assert "playbackContext" not in youtube.transport.bodies_for("WEB")[0]

    @pytest.mark.asyncio()
    async def test_result_is_cached(self) -> None:
        youtube = ScriptedYoutube(_default_players())
        use_case = _use_case(youtube)

        await use_case.fetch_stream_info(VIDEO_ID)
        requests = len(youtube.transport.requests)
        again = await use_case.fetch_stream_info(f"https://youtu.be/{VIDEO_ID}?t=5")

        assert len(youtube.transport.requests) == requests
        assert again.start_position == 5

    @pytest.mark.asyncio()
    async def test_mismatch_escalates_to_embedded(self) -> None:
        other = make_player_response(_OTHER_ID, streaming_data=_STREAMING_DATA)
        youtube = ScriptedYoutube(
            _default_players(
                WEB=other,
                TVHTML5=other,
                WEB_EMBEDDED_PLAYER=make_player_response(streaming_data=_STREAMING_DATA),
            )
        )
        info = await _use_case(youtube).fetch_stream_info(VIDEO_ID)

        assert info.id == VIDEO_ID
        embed_body = youtube.transport.bodies_for("WEB_EMBEDDED_PLAYER")[0]
        assert embed_body["context"]["thirdParty"]["embedUrl"].endswith(VIDEO_ID)
        assert info.audio_streams[0].content.endswith("&cpn=" + embed_body["cpn"])

    @pytest.mark.asyncio()
    async def test_every_client_mismatched(self) -> None:
        other = make_player_response(_OTHER_ID)
        youtube = ScriptedYoutube(
            _default_players(WEB=other, TVHTML5=other, WEB_EMBEDDED_PLAYER=other)
        )
        with pytest.raises(ResponseIdentityMismatch):
            await _use_case(youtube).fetch_stream_info(VIDEO_ID)

    @pytest.mark.asyncio()
    async def test_signature_failure_drops_ciphered_streams(self) -> None:
        player_js = THROTTLING_JS + f"var c={{signatureTimestamp:{SIGNATURE_TIMESTAMP}}};"
        youtube = ScriptedYoutube(_default_players(), player_js=player_js)
        info = await _use_case(youtube).fetch_stream_info(VIDEO_ID)

        assert info.audio_streams == []
        assert [s.itag for s in info.video_only_streams] == [137]
        assert info.errors == ["1 streams dropped: deobfuscation failed"]

    @pytest.mark.asyncio()
    async def test_denial_is_not_cached(self) -> None:
        youtube = ScriptedYoutube(
            _default_players(
                WEB=make_player_response(
                    status="UNPLAYABLE",
                    reason="Join this channel to get access to members-only content",
                )
            )
        )
        use_case = _use_case(youtube)

        for _ in range(2):
            with pytest.raises(PaidOrMembersOnly):
                await use_case.fetch_stream_info(VIDEO_ID)
        assert youtube.player_requests() == 2
