"""Extraction error kinds.

Every failure that leaves the core is one of these, so callers can
present a specific message instead of a generic one.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for all extraction failures.

    ``reason`` carries the backend-provided text (or our own description)
    so that callers can show it verbatim.
    """

    kind = "extraction_error"

    def __init__(self, reason: str = "") -> None:
        super().__init__(reason)
        self.reason = reason


class MalformedUpstreamData(ExtractionError):
    """Raised when JSON or script data does not have the expected shape."""

    kind = "malformed_upstream_data"


class DeobfuscationFailed(MalformedUpstreamData):
    """Raised when a signature or throttling function cannot be located or run."""

    kind = "deobfuscation_failed"


class ContentUnavailable(ExtractionError):
    """Raised when the content does not exist or was removed."""

    kind = "content_unavailable"


class AgeRestricted(ExtractionError):
    """Raised when the content requires age verification."""

    kind = "age_restricted"


class GeoRestricted(ExtractionError):
    """Raised when the content is not available in the requesting country."""

    kind = "geo_restricted"


class PrivateContent(ExtractionError):
    """Raised when the content is private."""

    kind = "private_content"


class PaidOrMembersOnly(ExtractionError):
    """Raised when the content requires a purchase or a channel membership."""

    kind = "paid_or_members_only"


class RateLimited(ExtractionError):
    """Raised on HTTP 429 or an equivalent anti-bot answer."""

    kind = "rate_limited"


class ResponseIdentityMismatch(ExtractionError):
    """Raised when the backend answered for a different video id."""

    kind = "response_identity_mismatch"
