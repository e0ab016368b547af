"""Player script samples, transport fakes and response builders shared by tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlparse

from tubegarr.domain.ports.transport import HttpResponse

VIDEO_ID = "dQw4w9WgXcQ"

# ---------------------------------------------------------------------------
# Player script fixture
# ---------------------------------------------------------------------------

# Signature transform: reverse, drop the first two chars, swap [0] and [3].
SIGNATURE_JS = (
    "var Xy={ab:function(a,b){a.splice(0,b)},"
    "cd:function(a){a.reverse()},"
    "ef:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b%a.length]=c}};\n"
    'Zq=function(a){a=a.split("");Xy.cd(a,1);Xy.ab(a,2);Xy.ef(a,3);return a.join("")};\n'
)
SIGNATURE_INPUT = "ABCDEFGHIJKLMNOP"
SIGNATURE_OUTPUT = "KMLNJIHGFEDCBA"

# Throttling transform: reversal behind an array indirection and an
# early-return guard on a global that only exists inside the real player.
THROTTLING_JS = (
    "var Hpa=[Kx];\n"
    'a.D&&(b=a.get("n"))&&(b=Hpa[0](b),a.set("n",b));\n'
    'Kx=function(a){var b=a.split(""),c=[];'
    'if(typeof Xq==="undefined")return a;'
    'try{b.reverse()}catch(d){return"x"}return b.join("")};\n'
)
THROTTLING_INPUT = "abcdef"
THROTTLING_OUTPUT = "fedcba"

SIGNATURE_TIMESTAMP = 19876

PLAYER_JS = (
    "(function(g){var window=this;\n"
    + SIGNATURE_JS
    + THROTTLING_JS
    + f'var cfg={{signatureTimestamp:{SIGNATURE_TIMESTAMP},foo:"bar"}};\n'
    + "})(_yt_player);\n"
)

PLAYER_HASH = "abcd1234"
PLAYER_URL = (
    f"https://www.youtube.com/s/player/{PLAYER_HASH}/player_ias.vflset/en_GB/base.js"
)
IFRAME_API_JS = (
    "var scriptUrl = 'https:\\/\\/www.youtube.com\\/s\\/player\\/"
    + PLAYER_HASH
    + "\\/www-widgetapi.vflset\\/www-widgetapi.js';"
)

# ---------------------------------------------------------------------------
# Transport fakes
# ---------------------------------------------------------------------------


def json_response(
    data: Mapping[str, Any],
    status: int = 200,
    final_url: str = "https://www.youtube.com/youtubei/v1/player",
) -> HttpResponse:
    return HttpResponse(
        status=status,
        body=json.dumps(data),
        final_url=final_url,
        headers={"content-type": "application/json; charset=UTF-8"},
    )


def text_response(body: str, status: int = 200, url: str = "") -> HttpResponse:
    return HttpResponse(
        status=status,
        body=body,
        final_url=url,
        headers={"content-type": "text/javascript"},
    )


Handler = Callable[[str, str, dict[str, Any] | None], HttpResponse]


class FakeTransport:
    """TransportPort fake dispatching every request to ``handler``.

    The handler receives ``(method, url, parsed_json_body)``.
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self.requests: list[tuple[str, str, dict[str, Any] | None]] = []

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        parsed = json.loads(body) if body else None
        self.requests.append((method, url, parsed))
        return self._handler(method, url, parsed)

    async def head_for(self, url: str) -> Mapping[str, str]:
        return {}

    def bodies_for(self, client_name: str, endpoint: str = "player") -> list[dict[str, Any]]:
        return [
            body
            for _, url, body in self.requests
            if body is not None
            and urlparse(url).path.endswith("/" + endpoint)
            and body["context"]["client"]["clientName"] == client_name
        ]


def client_name_of(body: dict[str, Any] | None) -> str | None:
    if body is None:
        return None
    return body.get("context", {}).get("client", {}).get("clientName")


def visitor_response() -> HttpResponse:
    return json_response(
        {"responseContext": {"visitorData": "CgtWSVNJVE9SX0RBVEEo_visitor_data_value"}}
    )


# ---------------------------------------------------------------------------
# Player response builders
# ---------------------------------------------------------------------------


def make_player_response(
    video_id: str = VIDEO_ID,
    *,
    status: str = "OK",
    reason: str | None = None,
    streaming_data: dict[str, Any] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    playability: dict[str, Any] = {"status": status}
    if reason is not None:
        playability["reason"] = reason
    response: dict[str, Any] = {
        "playabilityStatus": playability,
        "videoDetails": {
            "videoId": video_id,
            "title": "Never Gonna Give You Up",
            "author": "Rick Astley",
            "channelId": "UCuAXFkgsw1L7xaCfnd5JJOw",
            "lengthSeconds": "213",
            "viewCount": "1500000000",
            "shortDescription": "The official video",
            "keywords": ["rick astley", "never gonna give you up"],
            "thumbnail": {
                "thumbnails": [
                    {"url": "https://i.ytimg.com/vi/x/default.jpg", "width": 120, "height": 90}
                ]
            },
        },
        "microformat": {"playerMicroformatRenderer": {"category": "Music"}},
    }
    if streaming_data is not None:
        response["streamingData"] = streaming_data
    response.update(extra)
    return response
