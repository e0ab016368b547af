"""Multi-client player-response pipeline.

Order of work for one video:

1. desktop (WEB): metadata-only request, or the full request when a
   proof-of-origin token is available. Age-gated content falls back to
   the embedded client; everything else escalates to the TV client for
   streaming data. Responses echoing another video id are never
   trusted; the next client in the escalation chain is tried instead.
2. ANDROID, best effort.
3. IOS, best effort and only when enabled.
4. ``next`` request for supplementary metadata.

Steps 2 and 3 run concurrently; descriptors are always returned in
html5, android, ios order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx
import structlog

from tubegarr.domain.entities.clients import ClientProfile, ClientSession, PoTokenResult
from tubegarr.domain.entities.streams import RawStreamingDescriptor, StreamType
from tubegarr.domain.exceptions import ExtractionError, ResponseIdentityMismatch
from tubegarr.domain.ports.po_token import PoTokenProviderPort
from tubegarr.infrastructure.common import json_utils
from tubegarr.infrastructure.youtube import clients, playability
from tubegarr.infrastructure.youtube.clients import (
    ANDROID,
    IOS,
    TVHTML5,
    WATCH_URL,
    WEB_EMBEDDED_PLAYER,
)
from tubegarr.infrastructure.youtube.innertube import (
    WEB_METADATA_FIELDS,
    InnertubeClient,
)
from tubegarr.infrastructure.youtube.player_manager import PlayerScriptManager

log = structlog.get_logger(__name__)

PoTokenClient = Literal["web", "embed", "android", "ios"]

_BEST_EFFORT_ERRORS = (ExtractionError, httpx.HTTPError)


@dataclass(frozen=True)
class PlayerResponses:
    """Everything the pipeline learned about one video."""

    video_id: str
    player_response: dict[str, Any]
    stream_type: StreamType
    descriptors: tuple[RawStreamingDescriptor, ...]
    next_response: dict[str, Any] | None = None
    age_restricted: bool = False
    errors: tuple[str, ...] = field(default_factory=tuple)


def stream_type_of(player_response: dict[str, Any]) -> StreamType:
    if json_utils.has(player_response, "playabilityStatus.liveStreamability"):
        return StreamType.LIVE_STREAM
    if json_utils.get_bool(player_response, "videoDetails.isPostLiveDvr"):
        return StreamType.POST_LIVE_STREAM
    return StreamType.VIDEO_STREAM


def _descriptor(
    profile: ClientProfile,
    response: dict[str, Any],
    cpn: str,
    token: PoTokenResult | None,
) -> RawStreamingDescriptor:
    return RawStreamingDescriptor(
        client=profile.name,
        streaming_data=json_utils.get_object(response, "streamingData"),
        cpn=cpn,
        streaming_token=token.streaming_data_token if token else None,
    )


class PlayerResponseOrchestrator:
    """Drives the client profiles for one extraction at a time.

    Holds no per-video state; each :meth:`fetch` builds its own
    :class:`ClientSession`.
    """

    def __init__(
        self,
        innertube: InnertubeClient,
        player_manager: PlayerScriptManager,
        *,
        fetch_ios: bool = False,
        po_token_provider: PoTokenProviderPort | None = None,
        hl: str = "en",
        gl: str = "US",
    ) -> None:
        self._innertube = innertube
        self._player_manager = player_manager
        self.fetch_ios = fetch_ios
        self.po_token_provider = po_token_provider
        self._hl = hl
        self._gl = gl

    async def _po_token(self, client: PoTokenClient, video_id: str) -> PoTokenResult | None:
        provider = self.po_token_provider
        if provider is None:
            return None
        getter = {
            "web": provider.get_web_client_po_token,
            "embed": provider.get_web_embed_client_po_token,
            "android": provider.get_android_client_po_token,
            "ios": provider.get_ios_client_po_token,
        }[client]
        try:
            return await getter(video_id)
        except Exception as e:  # noqa: BLE001
            log.warning("po_token_provider_failed", client=client, error=str(e))
            return None

    async def _signature_timestamp(self, video_id: str) -> int | None:
        try:
            return await self._player_manager.get_signature_timestamp(video_id)
        except _BEST_EFFORT_ERRORS as e:
            log.warning("signature_timestamp_unavailable", video_id=video_id, error=str(e))
            return None

    # -- desktop chain -----------------------------------------------------

    async def _fetch_embedded(
        self, video_id: str, session: ClientSession, sts: int | None
    ) -> tuple[dict[str, Any], RawStreamingDescriptor]:
        token = await self._po_token("embed", video_id)
        cpn = clients.generate_content_playback_nonce()
        response = await self._innertube.fetch_player(
            WEB_EMBEDDED_PLAYER,
            video_id,
            session,
            cpn=cpn,
            signature_timestamp=sts,
            embed_url=WATCH_URL + video_id,
            po_token=token.player_request_token if token else None,
            visitor_data=token.visitor_data if token else None,
        )
        if not playability.is_response_valid(response, video_id):
            raise ResponseIdentityMismatch(
                f"Embedded player response is not valid for {video_id}"
            )
        playability.check_playability_status(response)
        return response, _descriptor(WEB_EMBEDDED_PLAYER, response, cpn, token)

    async def _fetch_tv(
        self, video_id: str, session: ClientSession, sts: int | None
    ) -> tuple[dict[str, Any], RawStreamingDescriptor]:
        cpn = clients.generate_content_playback_nonce()
        response = await self._innertube.fetch_player(
            TVHTML5, video_id, session, cpn=cpn, signature_timestamp=sts
        )
        return response, _descriptor(TVHTML5, response, cpn, None)

    async def _escalate(
        self, video_id: str, session: ClientSession, sts: int | None
    ) -> tuple[dict[str, Any], RawStreamingDescriptor, bool]:
        """Desktop response unusable: TV first, then the embedded client."""
        response, descriptor = await self._fetch_tv(video_id, session, sts)
        if playability.is_response_valid(response, video_id):
            if playability.is_age_restricted(response):
                embedded, embedded_descriptor = await self._fetch_embedded(
                    video_id, session, sts
                )
                return embedded, embedded_descriptor, True
            playability.check_playability_status(response)
            return response, descriptor, False

        log.warning("player_response_mismatch", client=TVHTML5.name, video_id=video_id)
        embedded, embedded_descriptor = await self._fetch_embedded(video_id, session, sts)
        return embedded, embedded_descriptor, False

    async def _fetch_html5(
        self, video_id: str, session: ClientSession
    ) -> tuple[dict[str, Any], RawStreamingDescriptor, bool]:
        """Return ``(main player response, html5 descriptor, age_restricted)``."""
        web = await self._innertube.web_profile()
        token = await self._po_token("web", video_id)
        sts = await self._signature_timestamp(video_id)

        if token is None:
            response = await self._innertube.fetch_player(
                web, video_id, session, fields=WEB_METADATA_FIELDS
            )
            cpn = ""
        else:
            cpn = clients.generate_content_playback_nonce()
            response = await self._innertube.fetch_player(
                web,
                video_id,
                session,
                cpn=cpn,
                signature_timestamp=sts,
                po_token=token.player_request_token,
                visitor_data=token.visitor_data,
            )

        if not playability.is_response_valid(response, video_id):
            log.warning(
                "player_response_mismatch",
                client=web.name,
                video_id=video_id,
                echoed=playability.video_id_of(response),
            )
            return await self._escalate(video_id, session, sts)

        if playability.is_age_restricted(response):
            log.info("age_restricted_fallback", video_id=video_id)
            embedded, descriptor = await self._fetch_embedded(video_id, session, sts)
            return embedded, descriptor, True

        playability.check_playability_status(response)

        if token is not None:
            return response, _descriptor(web, response, cpn, token), False

        tv, descriptor = await self._fetch_tv(video_id, session, sts)
        if playability.is_response_valid(tv, video_id):
            return response, descriptor, False

        log.warning("player_response_mismatch", client=TVHTML5.name, video_id=video_id)
        _, descriptor = await self._fetch_embedded(video_id, session, sts)
        return response, descriptor, False

    # -- best-effort mobile clients ------------------------------------------

    async def _fetch_mobile(
        self, profile: ClientProfile, video_id: str, session: ClientSession
    ) -> RawStreamingDescriptor | None:
        client: PoTokenClient = "android" if profile is ANDROID else "ios"
        token = await self._po_token(client, video_id)
        cpn = clients.generate_content_playback_nonce()
        try:
            if token is None and profile is ANDROID:
                response = await self._innertube.fetch_reel_player(
                    profile, video_id, session, cpn=cpn
                )
            else:
                response = await self._innertube.fetch_player(
                    profile,
                    video_id,
                    session,
                    cpn=cpn,
                    po_token=token.player_request_token if token else None,
                    visitor_data=token.visitor_data if token else None,
                )
        except _BEST_EFFORT_ERRORS as e:
            log.warning("client_fetch_failed", client=profile.name, error=str(e))
            return None

        if not playability.is_response_valid(response, video_id):
            log.warning("player_response_mismatch", client=profile.name, video_id=video_id)
            return None
        return _descriptor(profile, response, cpn, token)

    async def _fetch_ios(
        self, video_id: str, session: ClientSession
    ) -> RawStreamingDescriptor | None:
        if not self.fetch_ios:
            return None
        return await self._fetch_mobile(IOS, video_id, session)

    # -- public ----------------------------------------------------------------

    async def fetch(self, video_id: str) -> PlayerResponses:
        """Run the whole pipeline for ``video_id``.

        Raises:
            ExtractionError: the desktop chain failed after every fallback.
        """
        session = ClientSession(hl=self._hl, gl=self._gl)
        errors: list[str] = []

        player_response, html5, age_restricted = await self._fetch_html5(video_id, session)
        stream_type = stream_type_of(player_response)

        android, ios = await asyncio.gather(
            self._fetch_mobile(ANDROID, video_id, session),
            self._fetch_ios(video_id, session),
        )
        descriptors = tuple(d for d in (html5, android, ios) if d is not None)

        next_response: dict[str, Any] | None = None
        try:
            next_response = await self._innertube.fetch_next(video_id, session)
        except _BEST_EFFORT_ERRORS as e:
            log.warning("next_request_failed", video_id=video_id, error=str(e))
            errors.append(f"Could not fetch next response: {e}")

        log.info(
            "player_responses_fetched",
            video_id=video_id,
            clients=[d.client for d in descriptors],
            stream_type=stream_type.value,
            age_restricted=age_restricted,
        )
        return PlayerResponses(
            video_id=video_id,
            player_response=player_response,
            stream_type=stream_type,
            descriptors=descriptors,
            next_response=next_response,
            age_restricted=age_restricted,
            errors=tuple(errors),
        )
