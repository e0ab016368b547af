"""Result cache identity.

Pure value objects: no framework dependencies and no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

STREAM_INFO = "stream_info"


@dataclass(frozen=True)
class CacheKey:
    """One cached result: which service, which normalized URL, which kind of info."""

    service_id: int
    url: str
    kind: str = STREAM_INFO
