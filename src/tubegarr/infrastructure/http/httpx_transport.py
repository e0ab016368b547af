"""TransportPort adapter backed by a shared ``httpx.AsyncClient``."""

from __future__ import annotations

from collections.abc import Mapping

import httpx
import structlog

from tubegarr.domain.ports.transport import HttpResponse

log = structlog.get_logger(__name__)


class HttpxTransport:
    """Executes extraction requests through httpx.

    The client is owned by the composition root; this adapter never
    closes it.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        response = await self._client.request(
            method,
            url,
            headers=dict(headers or {}),
            content=body,
        )
        log.debug(
            "http_response",
            method=method,
            url=url,
            status=response.status_code,
            final_url=str(response.url),
        )
        return HttpResponse(
            status=response.status_code,
            body=response.text,
            final_url=str(response.url),
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    async def head_for(self, url: str) -> Mapping[str, str]:
        response = await self._client.head(url)
        return {k.lower(): v for k, v in response.headers.items()}
