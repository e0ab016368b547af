"""Locating and downloading the JavaScript base player."""

from __future__ import annotations

import re

import httpx
import structlog
from bs4 import BeautifulSoup

from tubegarr.domain.exceptions import (
    ContentUnavailable,
    ExtractionError,
    MalformedUpstreamData,
)
from tubegarr.domain.ports.transport import TransportPort

log = structlog.get_logger(__name__)

IFRAME_API_URL = "https://www.youtube.com/iframe_api"
EMBED_URL = "https://www.youtube.com/embed/"
BASE_JS_PLAYER_URL = "https://www.youtube.com/s/player/{hash}/player_ias.vflset/en_GB/base.js"

_IFRAME_PLAYER_HASH_RE = re.compile(r"player\\/([a-z0-9]{8})\\/")
_EMBED_JS_URL_RE = re.compile(
    r'"jsUrl":"(/s/player/[A-Za-z0-9]+/player_ias\.vflset/[A-Za-z_-]+/base\.js)"'
)


def clean_player_url(url: str) -> str:
    """Make protocol-relative and host-relative player URLs absolute."""
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("/"):
        return "https://www.youtube.com" + url
    return url


def find_player_url_in_embed_page(html: str) -> str:
    """Find the base player URL in an embed page.

    Raises:
        MalformedUpstreamData: neither a script tag nor ``jsUrl`` points to it.
    """
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script", src=True):
        src = script["src"]
        if "base.js" in src:
            return src
    match = _EMBED_JS_URL_RE.search(html)
    if match is None:
        raise MalformedUpstreamData(
            "Embedded watch page didn't provide JavaScript base player's URL"
        )
    return match.group(1)


class PlayerScriptFetcher:
    """Downloads the current base player script.

    The iframe API is tried first because it is tiny; the embed page of
    the requested video is the fallback.
    """

    def __init__(self, transport: TransportPort) -> None:
        self._transport = transport

    async def _get_text(self, url: str, what: str) -> str:
        try:
            response = await self._transport.execute("GET", url)
        except httpx.HTTPError as e:
            raise MalformedUpstreamData(f"Could not fetch {what}: {e}") from e
        if response.status == 404:
            raise ContentUnavailable(f"Could not fetch {what}: not found")
        if response.status >= 400:
            raise MalformedUpstreamData(
                f"Could not fetch {what}: HTTP {response.status}"
            )
        return response.body

    async def _player_url_from_iframe_api(self) -> str:
        content = await self._get_text(IFRAME_API_URL, "IFrame resource")
        match = _IFRAME_PLAYER_HASH_RE.search(content)
        if match is None:
            raise MalformedUpstreamData(
                "IFrame resource didn't provide JavaScript base player's hash"
            )
        return BASE_JS_PLAYER_URL.format(hash=match.group(1))

    async def _player_url_from_embed_page(self, video_id: str) -> str:
        html = await self._get_text(EMBED_URL + video_id, "embedded watch page")
        return clean_player_url(find_player_url_in_embed_page(html))

    async def fetch(self, video_id: str) -> tuple[str, str]:
        """Return ``(player_url, player_code)``.

        Raises:
            ExtractionError: neither source yielded a downloadable player.
                Network failures are reported as ``MalformedUpstreamData``.
        """
        try:
            url = await self._player_url_from_iframe_api()
        except ExtractionError as e:
            log.warning("player_url_iframe_failed", error=str(e))
            url = await self._player_url_from_embed_page(video_id)

        code = await self._get_text(url, "JavaScript base player's code")
        log.info("player_script_downloaded", player_url=url, size=len(code))
        return url, code
