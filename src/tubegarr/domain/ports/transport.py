"""Port for the HTTP transport used by every client request."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class HttpResponse:
    """Transport-agnostic response.

    ``headers`` keys are lower-cased by the adapter; ``final_url`` is the
    URL after redirects.
    """

    status: int
    body: str
    final_url: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)


@runtime_checkable
class TransportPort(Protocol):
    """Performs HTTP requests on behalf of the extraction core.

    Implementations own timeouts, redirects and connection pooling.
    Network failures surface as the implementation's own exceptions.
    """

    async def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        body: bytes | None = None,
    ) -> HttpResponse:
        """Send a request and return the full response."""
        ...

    async def head_for(self, url: str) -> Mapping[str, str]:
        """Send a HEAD request and return the response headers."""
        ...
