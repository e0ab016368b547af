"""Client profile descriptors and per-extraction session state.

Pure value objects: no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ClientPlatform(Enum):
    DESKTOP = "DESKTOP"
    MOBILE = "MOBILE"
    GAME_CONSOLE = "GAME_CONSOLE"


class ClientScreen(Enum):
    WATCH = "WATCH"
    EMBED = "EMBED"


class HeaderStyle(Enum):
    """Which header set a profile sends with its requests."""

    DESKTOP = "desktop"
    MOBILE = "mobile"
    TV = "tv"


@dataclass(frozen=True)
class ClientProfile:
    """Immutable description of one official client we impersonate.

    Identity is ``name``; everything a request builder needs to differ
    between clients is expressed as a field here.
    """

    name: str
    client_name: str
    client_id: str
    version: str
    platform: ClientPlatform
    screen: ClientScreen = ClientScreen.WATCH
    header_style: HeaderStyle = HeaderStyle.DESKTOP
    header_version: str | None = None
    user_agent: str | None = None
    device_make: str | None = None
    device_model: str | None = None
    os_name: str | None = None
    os_version: str | None = None
    android_sdk_version: int = -1
    base_url: str = "https://www.youtube.com/youtubei/v1/"
    visitor_base_url: str = "https://www.youtube.com/youtubei/v1/"
    visitor_endpoint: str = "visitor_id"

    @property
    def client_version_header(self) -> str:
        return self.header_version or self.version


@dataclass(frozen=True)
class PoTokenResult:
    """Proof-of-origin tokens handed out by a provider for one client."""

    visitor_data: str | None
    player_request_token: str
    streaming_data_token: str | None = None


@dataclass
class ClientSession:
    """Per-extraction state shared by all request builders.

    Visitor data is written once per profile and never changes for the
    remainder of the session.
    """

    hl: str = "en"
    gl: str = "US"
    _visitor_data: dict[str, str] = field(default_factory=dict)

    def visitor_data(self, profile: str) -> str | None:
        return self._visitor_data.get(profile)

    def set_visitor_data(self, profile: str, value: str) -> None:
        current = self._visitor_data.get(profile)
        if current is not None and current != value:
            raise ValueError(f"visitor data for {profile} is already set")
        self._visitor_data[profile] = value
