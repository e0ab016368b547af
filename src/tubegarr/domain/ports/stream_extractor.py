"""Port for the per-service stream extractor."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tubegarr.domain.entities.streams import StreamInfo

from .po_token import PoTokenProviderPort


@runtime_checkable
class StreamExtractorPort(Protocol):
    """Turns a link into a :class:`StreamInfo` for one streaming service."""

    service_id: int

    def canonical_url(self, url_or_id: str) -> str:
        """Normalized URL used as cache identity; raises on unsupported links."""
        ...

    def start_position(self, url_or_id: str) -> int: ...

    async def extract(self, url: str) -> StreamInfo: ...

    def set_fetch_ios_client(self, enabled: bool) -> None: ...

    def set_po_token_provider(self, provider: PoTokenProviderPort | None) -> None: ...

    async def clear_caches(self) -> None: ...
