"""Classification of player-response playability statuses into error kinds.

The backend only gives human-readable reasons, so classification is a
substring match on them.
"""

from __future__ import annotations

from typing import Any

import structlog

from tubegarr.domain.exceptions import (
    AgeRestricted,
    ContentUnavailable,
    GeoRestricted,
    PaidOrMembersOnly,
    PrivateContent,
)
from tubegarr.infrastructure.common import json_utils

log = structlog.get_logger(__name__)


def _status(player_response: dict[str, Any]) -> str | None:
    return json_utils.get_string(player_response, "playabilityStatus.status")


def _reason(player_response: dict[str, Any]) -> str | None:
    return json_utils.get_string(player_response, "playabilityStatus.reason")


def is_playable(player_response: dict[str, Any]) -> bool:
    status = _status(player_response)
    return status is None or status.lower() == "ok"


def is_age_restricted(player_response: dict[str, Any]) -> bool:
    """``LOGIN_REQUIRED`` with an age-related reason."""
    status = _status(player_response)
    if status is None or status.lower() != "login_required":
        return False
    reason = _reason(player_response) or ""
    return "age" in reason


def video_id_of(player_response: dict[str, Any]) -> str | None:
    return json_utils.get_string(player_response, "videoDetails.videoId")


def is_response_valid(player_response: dict[str, Any], video_id: str) -> bool:
    """The backend echoed the requested id (it substitutes a "get the app" video otherwise)."""
    return video_id_of(player_response) == video_id


def check_playability_status(player_response: dict[str, Any]) -> None:
    """Raise the error kind matching the response's playability status.

    Returns silently for playable (or status-less) responses.
    """
    status = _status(player_response)
    if status is None or status.lower() == "ok":
        return

    status = status.lower()
    reason = _reason(player_response)

    if status == "login_required":
        if reason is None:
            messages = json_utils.get_array(player_response, "playabilityStatus.messages")
            first = messages[0] if messages and isinstance(messages[0], str) else ""
            if "private" in first.lower():
                raise PrivateContent("This video is private")
        elif "age" in reason:
            raise AgeRestricted(reason)

    if status in ("unplayable", "error") and reason is not None:
        if "Music Premium" in reason:
            raise PaidOrMembersOnly("This video is a YouTube Music Premium video")
        if "payment" in reason:
            raise PaidOrMembersOnly("This video is a paid video")
        if "members-only" in reason:
            raise PaidOrMembersOnly(
                "This video is only available for members of the channel of this video"
            )
        if "unavailable" in reason:
            detail = json_utils.get_text(
                player_response,
                "playabilityStatus.errorScreen.playerErrorMessageRenderer.subreason",
            )
            if detail and "country" in detail:
                raise GeoRestricted(
                    "This video is not available in client's country."
                )
            raise ContentUnavailable(detail or reason)
        if "age-restricted" in reason:
            raise AgeRestricted(reason)

    log.info("playability_denied", status=status, reason=reason)
    raise ContentUnavailable(f'Got error: "{reason}"')


def error_message(player_response: dict[str, Any]) -> str | None:
    return json_utils.get_text(
        player_response,
        "playabilityStatus.errorScreen.playerErrorMessageRenderer.reason",
    )
