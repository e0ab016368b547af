"""Video id and start position parsing for the URL shapes users paste."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

from tubegarr.domain.exceptions import MalformedUpstreamData

WATCH_URL = "https://www.youtube.com/watch?v="

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_PATH_PREFIXES = ("/embed/", "/shorts/", "/live/", "/v/", "/e/")
_YOUTUBE_HOSTS = {
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "youtube-nocookie.com",
    "www.youtube-nocookie.com",
}
_TIMESTAMP_RE = re.compile(r"^(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s?)?$")


def _validated(candidate: str | None, original: str) -> str:
    if candidate and _ID_RE.match(candidate):
        return candidate
    raise MalformedUpstreamData(f"Could not extract a video id from {original!r}")


def extract_video_id(url_or_id: str) -> str:
    """Return the 11 character id of a video URL or a bare id.

    Raises:
        MalformedUpstreamData: nothing that looks like a video id was found.
    """
    value = url_or_id.strip()
    if _ID_RE.match(value):
        return value

    parsed = urlparse(value if "://" in value else "https://" + value)
    host = (parsed.hostname or "").lower()

    if host == "youtu.be":
        return _validated(parsed.path.lstrip("/").split("/")[0], url_or_id)

    if host not in _YOUTUBE_HOSTS:
        raise MalformedUpstreamData(f"Not a YouTube URL: {url_or_id!r}")

    if parsed.path in ("/watch", "/watch/"):
        return _validated(parse_qs(parsed.query).get("v", [None])[0], url_or_id)

    for prefix in _PATH_PREFIXES:
        if parsed.path.startswith(prefix):
            return _validated(parsed.path[len(prefix):].split("/")[0], url_or_id)

    raise MalformedUpstreamData(f"Could not extract a video id from {url_or_id!r}")


def parse_start_position(url_or_id: str) -> int:
    """Seconds from a ``t``/``start`` parameter (``90``, ``1m30s``), else 0."""
    parsed = urlparse(url_or_id if "://" in url_or_id else "https://" + url_or_id)
    params = parse_qs(parsed.query)
    if parsed.fragment:
        params.update(parse_qs(parsed.fragment))
    raw = (params.get("t") or params.get("start") or [""])[0]
    match = _TIMESTAMP_RE.match(raw)
    if not raw or match is None:
        return 0
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def canonical_url(video_id: str) -> str:
    return WATCH_URL + video_id
