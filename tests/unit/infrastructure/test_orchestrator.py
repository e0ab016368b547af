"""Tests for the multi-client player-response pipeline."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from youtube_samples import VIDEO_ID, make_player_response

from tubegarr.domain.entities.clients import PoTokenResult
from tubegarr.domain.entities.streams import StreamType
from tubegarr.domain.exceptions import (
    AgeRestricted,
    ContentUnavailable,
    MalformedUpstreamData,
    PaidOrMembersOnly,
    RateLimited,
    ResponseIdentityMismatch,
)
from tubegarr.infrastructure.youtube.clients import WEB
from tubegarr.infrastructure.youtube.innertube import WEB_METADATA_FIELDS
from tubegarr.infrastructure.youtube.orchestrator import (
    PlayerResponseOrchestrator,
    stream_type_of,
)

_OTHER_ID = "aaaaaaaaaaa"


def _streaming(client: str) -> dict[str, Any]:
    return {"adaptiveFormats": [{"itag": 140, "url": f"https://cdn.example/{client}"}]}


def _ok(client: str) -> dict[str, Any]:
    return make_player_response(streaming_data=_streaming(client))


class FakeInnertube:
    """Answers player requests from a per-client table of responses or errors."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fetch_next = AsyncMock(return_value={"contents": {}})

    async def web_profile(self):
        return WEB

    def _answer(self, name: str) -> dict[str, Any]:
        answer = self.responses.get(name)
        if answer is None:
            raise AssertionError(f"unexpected request for {name}")
        if isinstance(answer, BaseException):
            raise answer
        return answer

    async def fetch_player(self, profile, video_id, session, **kwargs):
        self.calls.append((profile.name, kwargs))
        return self._answer(profile.name)

    async def fetch_reel_player(self, profile, video_id, session, **kwargs):
        self.calls.append((profile.name + "_REEL", kwargs))
        return self._answer(profile.name + "_REEL")

    def clients(self) -> list[str]:
        return [name for name, _ in self.calls]

    def kwargs_for(self, name: str) -> dict[str, Any]:
        return next(kwargs for client, kwargs in self.calls if client == name)


def _player_manager(sts: int | Exception = 19876) -> MagicMock:
    manager = MagicMock()
    if isinstance(sts, Exception):
        manager.get_signature_timestamp = AsyncMock(side_effect=sts)
    else:
        manager.get_signature_timestamp = AsyncMock(return_value=sts)
    return manager


def _orchestrator(
    innertube: FakeInnertube, *, sts: int | Exception = 19876, **kwargs: Any
) -> PlayerResponseOrchestrator:
    return PlayerResponseOrchestrator(innertube, _player_manager(sts), **kwargs)  # type: ignore[arg-type]


def _default_responses(**overrides: Any) -> dict[str, Any]:
    responses: dict[str, Any] = {
        "WEB": make_player_response(),
        "TVHTML5": _ok("tv"),
        "ANDROID_REEL": _ok("android"),
        "IOS": _ok("ios"),
        "WEB_EMBEDDED_PLAYER": _ok("embed"),
    }
    responses.update(overrides)
    return responses


class StaticPoTokenProvider:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail

    async def _token(self, video_id: str) -> PoTokenResult:
        if self.fail:
            raise RuntimeError("provider down")
        return PoTokenResult("visitor", "player-pot", "streaming-pot")

    get_web_client_po_token = _token
    get_web_embed_client_po_token = _token
    get_android_client_po_token = _token
    get_ios_client_po_token = _token


class TestPlayerResponseOrchestrator:
    @pytest.mark.asyncio()
    async def test_happy_path(self) -> None:
        innertube = FakeInnertube(_default_responses())
        result = await _orchestrator(innertube).fetch(VIDEO_ID)

        assert innertube.clients() == ["WEB", "TVHTML5", "ANDROID_REEL"]
        assert [d.client for d in result.descriptors] == ["TVHTML5", "ANDROID"]
        assert result.player_response is innertube.responses["WEB"]
        assert result.stream_type is StreamType.VIDEO_STREAM
        assert result.next_response == {"contents": {}}
        assert not result.age_restricted
        assert result.errors == ()

    @pytest.mark.asyncio()
    async def test_web_request_is_metadata_only(self) -> None:
        innertube = FakeInnertube(_default_responses())
        await _orchestrator(innertube).fetch(VIDEO_ID)
        assert innertube.kwargs_for("WEB")["fields"] == WEB_METADATA_FIELDS
        assert innertube.kwargs_for("TVHTML5")["signature_timestamp"] == 19876

    @pytest.mark.asyncio()
    async def test_cpn_distinct_per_client(self) -> None:
        innertube = FakeInnertube(_default_responses())
        result = await _orchestrator(innertube, fetch_ios=True).fetch(VIDEO_ID)
        cpns = [d.cpn for d in result.descriptors]
        assert all(len(cpn) == 16 for cpn in cpns)
        assert len(set(cpns)) == 3

    @pytest.mark.asyncio()
    async def test_ios_order(self) -> None:
        innertube = FakeInnertube(_default_responses())
        result = await _orchestrator(innertube, fetch_ios=True).fetch(VIDEO_ID)
        assert [d.client for d in result.descriptors] == ["TVHTML5", "ANDROID", "IOS"]

    @pytest.mark.asyncio()
    async def test_web_mismatch_uses_tv_response(self) -> None:
        innertube = FakeInnertube(
            _default_responses(WEB=make_player_response(_OTHER_ID))
        )
        result = await _orchestrator(innertube).fetch(VIDEO_ID)
        assert result.player_response is innertube.responses["TVHTML5"]
        assert result.descriptors[0].client == "TVHTML5"

    @pytest.mark.asyncio()
    async def test_tv_mismatch_uses_embedded(self) -> None:
        innertube = FakeInnertube(
            _default_responses(TVHTML5=make_player_response(_OTHER_ID))
        )
        result = await _orchestrator(innertube).fetch(VIDEO_ID)
        assert result.player_response is innertube.responses["WEB"]
        assert result.descriptors[0].client == "WEB_EMBEDDED_PLAYER"

    @pytest.mark.asyncio()
    async def test_every_client_mismatched(self) -> None:
        other = make_player_response(_OTHER_ID)
        innertube = FakeInnertube(
            _default_responses(WEB=other, TVHTML5=other, WEB_EMBEDDED_PLAYER=other)
        )
        with pytest.raises(ResponseIdentityMismatch):
            await _orchestrator(innertube).fetch(VIDEO_ID)

    @pytest.mark.asyncio()
    async def test_age_restricted_uses_embedded(self) -> None:
        innertube = FakeInnertube(
            _default_responses(
                WEB=make_player_response(
                    status="LOGIN_REQUIRED", reason="Sign in to confirm your age"
                )
            )
        )
        result = await _orchestrator(innertube).fetch(VIDEO_ID)
        assert result.age_restricted
        assert result.player_response is innertube.responses["WEB_EMBEDDED_PLAYER"]
        assert "TVHTML5" not in innertube.clients()
        embed_kwargs = innertube.kwargs_for("WEB_EMBEDDED_PLAYER")
        assert embed_kwargs["embed_url"].endswith(VIDEO_ID)

    @pytest.mark.asyncio()
    async def test_age_restricted_embedded_denied(self) -> None:
        innertube = FakeInnertube(
            _default_responses(
                WEB=make_player_response(
                    status="LOGIN_REQUIRED", reason="Sign in to confirm your age"
                ),
                WEB_EMBEDDED_PLAYER=make_player_response(
                    status="LOGIN_REQUIRED", reason="Sign in to confirm your age"
                ),
            )
        )
        with pytest.raises(AgeRestricted, match="confirm your age"):
            await _orchestrator(innertube).fetch(VIDEO_ID)

    @pytest.mark.asyncio()
    async def test_members_only_raises(self) -> None:
        innertube = FakeInnertube(
            _default_responses(
                WEB=make_player_response(
                    status="UNPLAYABLE", reason="Join this channel to get members-only access"
                )
            )
        )
        with pytest.raises(PaidOrMembersOnly):
            await _orchestrator(innertube).fetch(VIDEO_ID)
        assert innertube.clients() == ["WEB"]

    @pytest.mark.asyncio()
    async def test_mobile_failures_are_ignored(self) -> None:
        innertube = FakeInnertube(
            _default_responses(
                ANDROID_REEL=httpx.ConnectError("refused"),
                IOS=make_player_response(_OTHER_ID),
            )
        )
        result = await _orchestrator(innertube, fetch_ios=True).fetch(VIDEO_ID)
        assert [d.client for d in result.descriptors] == ["TVHTML5"]

    @pytest.mark.asyncio()
    async def test_rate_limited_desktop_propagates(self) -> None:
        innertube = FakeInnertube(_default_responses(WEB=RateLimited("HTTP 429")))
        with pytest.raises(RateLimited):
            await _orchestrator(innertube).fetch(VIDEO_ID)

    @pytest.mark.asyncio()
    async def test_missing_signature_timestamp(self) -> None:
        innertube = FakeInnertube(_default_responses())
        orchestrator = _orchestrator(innertube, sts=MalformedUpstreamData("no sts"))
        result = await orchestrator.fetch(VIDEO_ID)
        assert innertube.kwargs_for("TVHTML5")["signature_timestamp"] is None
        assert result.descriptors[0].client == "TVHTML5"

    @pytest.mark.asyncio()
    async def test_next_failure_recorded(self) -> None:
        innertube = FakeInnertube(_default_responses())
        innertube.fetch_next.side_effect = ContentUnavailable("Not found")
        result = await _orchestrator(innertube).fetch(VIDEO_ID)
        assert result.next_response is None
        assert result.errors == ("Could not fetch next response: Not found",)

    @pytest.mark.asyncio()
    async def test_po_token_full_web_request(self) -> None:
        innertube = FakeInnertube(
            _default_responses(WEB=_ok("web"), ANDROID=_ok("android"))
        )
        orchestrator = _orchestrator(innertube, po_token_provider=StaticPoTokenProvider())
        result = await orchestrator.fetch(VIDEO_ID)

        assert innertube.clients() == ["WEB", "ANDROID"]
        web_kwargs = innertube.kwargs_for("WEB")
        assert web_kwargs["po_token"] == "player-pot"
        assert web_kwargs["visitor_data"] == "visitor"
        assert "fields" not in web_kwargs
        assert result.descriptors[0].client == "WEB"
        assert result.descriptors[0].streaming_token == "streaming-pot"

    @pytest.mark.asyncio()
    async def test_po_token_provider_errors_ignored(self) -> None:
        innertube = FakeInnertube(_default_responses())
        orchestrator = _orchestrator(
            innertube, po_token_provider=StaticPoTokenProvider(fail=True)
        )
        result = await orchestrator.fetch(VIDEO_ID)
        assert innertube.kwargs_for("WEB")["fields"] == WEB_METADATA_FIELDS
        assert all(d.streaming_token is None for d in result.descriptors)


class TestStreamTypeOf:
    def test_live(self) -> None:
        response = make_player_response()
        response["playabilityStatus"]["liveStreamability"] = {"liveStreamabilityRenderer": {}}
        assert stream_type_of(response) is StreamType.LIVE_STREAM

    def test_post_live(self) -> None:
        response = make_player_response()
        response["videoDetails"]["isPostLiveDvr"] = True
        assert stream_type_of(response) is StreamType.POST_LIVE_STREAM

    def test_regular(self) -> None:
        assert stream_type_of(make_player_response()) is StreamType.VIDEO_STREAM
