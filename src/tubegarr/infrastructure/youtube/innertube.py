"""Innertube API requests: visitor data, player, reel, next and sw.js."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import urlparse

import structlog

from tubegarr.domain.entities.clients import ClientProfile, ClientSession
from tubegarr.domain.exceptions import (
    ContentUnavailable,
    MalformedUpstreamData,
    RateLimited,
)
from tubegarr.domain.ports.transport import HttpResponse, TransportPort
from tubegarr.infrastructure.common import json_utils
from tubegarr.infrastructure.youtube import clients
from tubegarr.infrastructure.youtube.clients import (
    DISABLE_PRETTY_PRINT,
    WATCH_URL,
    WEB,
    YOUTUBEI_V1_URL,
)

log = structlog.get_logger(__name__)

SERVICE_WORKER_URL = "https://www.youtube.com/sw.js"
WEB_METADATA_FIELDS = "microformat,playabilityStatus,storyboards,videoDetails"

_CLIENT_VERSION_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r'INNERTUBE_CONTEXT_CLIENT_VERSION":"([0-9.]+?)"'),
    re.compile(r'innertube_context_client_version":"([0-9.]+?)"'),
    re.compile(r"client\.version=([0-9.]+)"),
)

_ERROR_PAGE_PATHS = ("/oops", "/error")


def validate_json_response(response: HttpResponse) -> dict[str, Any]:
    """Turn a raw innertube answer into a JSON object or a typed error.

    Raises:
        RateLimited: HTTP 429.
        ContentUnavailable: HTTP 404 or a redirect to an error page.
        MalformedUpstreamData: short bodies, HTML or invalid JSON.
    """
    if response.status == 429:
        raise RateLimited("HTTP 429: too many requests")
    if response.status == 404:
        raise ContentUnavailable("Not found")

    final = urlparse(response.final_url)
    if final.hostname == "www.youtube.com" and final.path.startswith(_ERROR_PAGE_PATHS):
        raise ContentUnavailable("Content unavailable")

    if response.status >= 400:
        raise MalformedUpstreamData(f"HTTP {response.status} from innertube")
    if len(response.body) < 50:
        raise MalformedUpstreamData("JSON response is too short")
    if response.header("content-type").lower().startswith("text/html"):
        raise MalformedUpstreamData("Got HTML document, expected JSON response")
    return json_utils.parse(response.body)


class InnertubeClient:
    """Sends profile-shaped requests built by :mod:`clients`.

    Stateless apart from the discovered WEB client version.
    """

    def __init__(
        self,
        transport: TransportPort,
        *,
        discover_client_version: bool = False,
    ) -> None:
        self._transport = transport
        self._discover = discover_client_version
        self._web_version: str | None = None

    async def post(
        self,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str],
    ) -> dict[str, Any]:
        response = await self._transport.execute(
            "POST", url, headers, json_utils.dumps(body).encode("utf-8")
        )
        return validate_json_response(response)

    async def web_profile(self) -> ClientProfile:
        """WEB profile, with the live client version when discovery is enabled."""
        if not self._discover:
            return WEB
        if self._web_version is None:
            self._web_version = await self._fetch_client_version()
        return clients.with_version(WEB, self._web_version)

    async def _fetch_client_version(self) -> str:
        response = await self._transport.execute("GET", SERVICE_WORKER_URL)
        if response.status == 200:
            for pattern in _CLIENT_VERSION_RES:
                match = pattern.search(response.body)
                if match:
                    log.debug("client_version_discovered", version=match.group(1))
                    return match.group(1)
        log.warning("client_version_discovery_failed", status=response.status)
        return WEB.version

    async def fetch_visitor_data(
        self,
        profile: ClientProfile,
        session: ClientSession,
        *,
        embed_url: str | None = None,
    ) -> str:
        """Return the session's visitor data for ``profile``, fetching it once."""
        existing = session.visitor_data(profile.name)
        if existing is not None:
            return existing

        url = f"{profile.visitor_base_url}{profile.visitor_endpoint}?{DISABLE_PRETTY_PRINT}"
        body = {"context": clients.build_context(profile, session, embed_url=embed_url)}
        data = await self.post(url, body, clients.build_headers(profile, session))
        visitor_data = json_utils.get_string(data, "responseContext.visitorData")
        if not visitor_data:
            raise MalformedUpstreamData(
                f"Could not get visitor data for {profile.name}"
            )
        session.set_visitor_data(profile.name, visitor_data)
        log.debug("visitor_data_fetched", client=profile.name)
        return visitor_data

    def _player_url(self, profile: ClientProfile, video_id: str, endpoint: str) -> str:
        url = f"{profile.base_url}{endpoint}?{DISABLE_PRETTY_PRINT}"
        if profile.base_url != YOUTUBEI_V1_URL:
            url += f"&t={clients.generate_t_parameter()}&id={video_id}"
        return url

    async def fetch_player(
        self,
        profile: ClientProfile,
        video_id: str,
        session: ClientSession,
        *,
        cpn: str | None = None,
        signature_timestamp: int | None = None,
        embed_url: str | None = None,
        po_token: str | None = None,
        visitor_data: str | None = None,
        fields: str | None = None,
    ) -> dict[str, Any]:
        """Send a ``player`` request shaped for ``profile``.

        Visitor data comes from the proof-of-origin token when given,
        otherwise from the preflight request.
        """
        if visitor_data is None:
            visitor_data = await self.fetch_visitor_data(
                profile, session, embed_url=embed_url
            )
        body = clients.build_player_body(
            profile,
            video_id,
            session,
            cpn=cpn,
            signature_timestamp=signature_timestamp,
            referer=embed_url or WATCH_URL + video_id,
            embed_url=embed_url,
            po_token=po_token,
            visitor_data=visitor_data,
        )
        url = self._player_url(profile, video_id, "player")
        if fields:
            url += f"&$fields={fields}"
        log.debug("player_request", client=profile.name, video_id=video_id)
        return await self.post(url, body, clients.build_headers(profile, session))

    async def fetch_reel_player(
        self,
        profile: ClientProfile,
        video_id: str,
        session: ClientSession,
        *,
        cpn: str | None = None,
    ) -> dict[str, Any]:
        """Player response through the shorts ``reel_item_watch`` endpoint."""
        await self.fetch_visitor_data(profile, session)
        body = clients.build_player_body(profile, video_id, session, cpn=cpn)
        body["playerRequest"] = {"videoId": video_id}
        body["disablePlayerResponse"] = False
        url = self._player_url(profile, video_id, "reel/reel_item_watch")
        url += "&$fields=playerResponse"
        log.debug("reel_player_request", client=profile.name, video_id=video_id)
        data = await self.post(url, body, clients.build_headers(profile, session))
        return json_utils.get_object(data, "playerResponse")

    async def fetch_next(self, video_id: str, session: ClientSession) -> dict[str, Any]:
        """Supplementary watch-page metadata (desktop WEB context)."""
        profile = await self.web_profile()
        context = clients.build_context(profile, session)
        context["client"]["originalUrl"] = WATCH_URL + video_id
        body = {
            "context": context,
            "videoId": video_id,
            "contentCheckOk": True,
            "racyCheckOk": True,
        }
        url = f"{YOUTUBEI_V1_URL}next?{DISABLE_PRETTY_PRINT}"
        return await self.post(url, body, clients.build_headers(profile, session))
