"""Client profile table and the generic request builders.

Every per-client difference lives in the ``ClientProfile`` fields of
``CLIENT_PROFILES``; :func:`build_player_body` and :func:`build_headers`
are the only code paths that turn a profile into a request.
"""

from __future__ import annotations

import secrets
from dataclasses import replace
from typing import Any

from tubegarr.domain.entities.clients import (
    ClientPlatform,
    ClientProfile,
    ClientScreen,
    ClientSession,
    HeaderStyle,
)

YOUTUBE_BASE_URL = "https://www.youtube.com"
YOUTUBEI_V1_URL = "https://www.youtube.com/youtubei/v1/"
YOUTUBEI_V1_GAPIS_URL = "https://youtubei.googleapis.com/youtubei/v1/"
WATCH_URL = "https://www.youtube.com/watch?v="
DISABLE_PRETTY_PRINT = "prettyPrint=false"

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:128.0) "
    "Gecko/20100101 Firefox/128.0"
)
TVHTML5_USER_AGENT = (
    "Mozilla/5.0 (PlayStation; PlayStation 4/12.00) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.4 Safari/605.1.15"
)
ANDROID_USER_AGENT = (
    "com.google.android.youtube/19.28.35 (Linux; U; Android 15; {country}) gzip"
)
IOS_USER_AGENT = (
    "com.google.ios.youtube/20.03.02(iPhone16,2; U; CPU iOS 18_2_1 like Mac OS X; "
    "{country})"
)

# Consent cookie; without it EU requests are redirected to a consent page.
CONSENT_COOKIE = "SOCS=CAE="

_NONCE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"

WEB = ClientProfile(
    name="WEB",
    client_name="WEB",
    client_id="1",
    version="2.20250122.04.00",
    platform=ClientPlatform.DESKTOP,
    user_agent=DESKTOP_USER_AGENT,
)

WEB_EMBEDDED_PLAYER = ClientProfile(
    name="WEB_EMBEDDED_PLAYER",
    client_name="WEB_EMBEDDED_PLAYER",
    client_id="56",
    version="1.20250122.01.00",
    header_version="1.20250121.00.00",
    platform=ClientPlatform.DESKTOP,
    screen=ClientScreen.EMBED,
    user_agent=DESKTOP_USER_AGENT,
)

TVHTML5 = ClientProfile(
    name="TVHTML5",
    client_name="TVHTML5",
    client_id="7",
    version="7.20250122.15.00",
    platform=ClientPlatform.GAME_CONSOLE,
    header_style=HeaderStyle.TV,
    user_agent=TVHTML5_USER_AGENT,
    device_make="Sony",
    device_model="PlayStation 4",
    os_name="PlayStation 4",
    os_version="",
    visitor_endpoint="guide",
)

ANDROID = ClientProfile(
    name="ANDROID",
    client_name="ANDROID",
    client_id="3",
    version="19.28.35",
    platform=ClientPlatform.MOBILE,
    header_style=HeaderStyle.MOBILE,
    user_agent=ANDROID_USER_AGENT,
    os_name="Android",
    os_version="15",
    android_sdk_version=35,
    base_url=YOUTUBEI_V1_GAPIS_URL,
    visitor_base_url=YOUTUBEI_V1_GAPIS_URL,
)

IOS = ClientProfile(
    name="IOS",
    client_name="IOS",
    client_id="5",
    version="20.03.02",
    platform=ClientPlatform.MOBILE,
    header_style=HeaderStyle.MOBILE,
    user_agent=IOS_USER_AGENT,
    device_make="Apple",
    device_model="iPhone16,2",
    os_name="iOS",
    os_version="18.2.1.22C161",
    base_url=YOUTUBEI_V1_GAPIS_URL,
)

CLIENT_PROFILES: dict[str, ClientProfile] = {
    profile.name: profile
    for profile in (WEB, WEB_EMBEDDED_PLAYER, TVHTML5, ANDROID, IOS)
}


def with_version(profile: ClientProfile, version: str) -> ClientProfile:
    """Return a copy of ``profile`` using a discovered client version."""
    if version == profile.version:
        return profile
    return replace(profile, version=version)


def _random_string(length: int) -> str:
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(length))


def generate_content_playback_nonce() -> str:
    """Session nonce (``cpn``) appended to every stream URL."""
    return _random_string(16)


def generate_t_parameter() -> str:
    return _random_string(12)


def user_agent_for(profile: ClientProfile, session: ClientSession) -> str | None:
    if profile.user_agent is None:
        return None
    return profile.user_agent.format(country=session.gl)


def build_headers(profile: ClientProfile, session: ClientSession) -> dict[str, str]:
    """Header set a real client of this profile would send."""
    headers = {"Content-Type": "application/json"}
    user_agent = user_agent_for(profile, session)
    if user_agent:
        headers["User-Agent"] = user_agent

    if profile.header_style is HeaderStyle.MOBILE:
        headers["X-Goog-Api-Format-Version"] = "2"
        return headers

    headers.update(
        {
            "Origin": YOUTUBE_BASE_URL,
            "Referer": YOUTUBE_BASE_URL,
            "X-YouTube-Client-Name": profile.client_id,
            "X-YouTube-Client-Version": profile.client_version_header,
        }
    )
    if profile.header_style is HeaderStyle.DESKTOP:
        headers["Cookie"] = CONSENT_COOKIE
    return headers


def build_context(
    profile: ClientProfile,
    session: ClientSession,
    *,
    embed_url: str | None = None,
    visitor_data: str | None = None,
) -> dict[str, Any]:
    """Build the ``context`` block shared by every innertube request."""
    client: dict[str, Any] = {
        "clientName": profile.client_name,
        "clientVersion": profile.version,
        "clientScreen": profile.screen.value,
        "platform": profile.platform.value,
    }
    visitor = visitor_data or session.visitor_data(profile.name)
    if visitor:
        client["visitorData"] = visitor
    if profile.device_make is not None:
        client["deviceMake"] = profile.device_make
    if profile.device_model is not None:
        client["deviceModel"] = profile.device_model
    if profile.os_name is not None:
        client["osName"] = profile.os_name
    if profile.os_version is not None:
        client["osVersion"] = profile.os_version
    if profile.android_sdk_version > 0:
        client["androidSdkVersion"] = profile.android_sdk_version
    client["hl"] = session.hl
    client["gl"] = session.gl
    client["utcOffsetMinutes"] = 0

    context: dict[str, Any] = {"client": client}
    if embed_url is not None:
        context["thirdParty"] = {"embedUrl": embed_url}
    context["request"] = {"internalExperimentFlags": [], "useSsl": True}
    context["user"] = {"lockedSafetyMode": False}
    return context


def build_player_body(
    profile: ClientProfile,
    video_id: str,
    session: ClientSession,
    *,
    cpn: str | None = None,
    signature_timestamp: int | None = None,
    referer: str | None = None,
    embed_url: str | None = None,
    po_token: str | None = None,
    visitor_data: str | None = None,
) -> dict[str, Any]:
    """Body of a ``player`` request for ``profile``.

    ``playbackContext`` is only sent when a signature timestamp is known;
    ``serviceIntegrityDimensions`` only with a proof-of-origin token.
    """
    body: dict[str, Any] = {
        "context": build_context(
            profile, session, embed_url=embed_url, visitor_data=visitor_data
        ),
        "videoId": video_id,
    }
    if cpn is not None:
        body["cpn"] = cpn
    body["contentCheckOk"] = True
    body["racyCheckOk"] = True

    if signature_timestamp is not None:
        body["playbackContext"] = {
            "contentPlaybackContext": {
                "signatureTimestamp": signature_timestamp,
                "referer": referer or WATCH_URL + video_id,
            }
        }
    if po_token is not None:
        body["serviceIntegrityDimensions"] = {"poToken": po_token}
    return body
