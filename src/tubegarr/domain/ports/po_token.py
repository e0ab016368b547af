"""Port for proof-of-origin token providers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tubegarr.domain.entities.clients import PoTokenResult


@runtime_checkable
class PoTokenProviderPort(Protocol):
    """Supplies proof-of-origin tokens per client profile.

    Returning None is always valid: extraction continues without a token,
    with reduced reliability.
    """

    async def get_web_client_po_token(self, video_id: str) -> PoTokenResult | None:
        ...

    async def get_web_embed_client_po_token(
        self, video_id: str
    ) -> PoTokenResult | None:
        ...

    async def get_android_client_po_token(self, video_id: str) -> PoTokenResult | None:
        ...

    async def get_ios_client_po_token(self, video_id: str) -> PoTokenResult | None:
        ...
