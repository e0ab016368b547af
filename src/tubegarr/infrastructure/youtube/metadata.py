"""Video metadata from the player and ``next`` responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from tubegarr.domain.entities.streams import Thumbnail
from tubegarr.infrastructure.common import json_utils

log = structlog.get_logger(__name__)

CHANNEL_URL = "https://www.youtube.com/channel/"

_METADATA_ROWS_PATH = (
    "contents.twoColumnWatchNextResults.results.results.contents"
)


@dataclass(frozen=True)
class VideoMetadata:
    title: str = ""
    duration: int = -1
    uploader_name: str = ""
    uploader_url: str = ""
    description: str = ""
    category: str = ""
    view_count: int = -1
    age_limit: int = 0
    tags: list[str] = field(default_factory=list)
    thumbnails: list[Thumbnail] = field(default_factory=list)


def _thumbnails(player_response: dict[str, Any]) -> list[Thumbnail]:
    result = []
    for entry in json_utils.get_array(player_response, "videoDetails.thumbnail.thumbnails"):
        url = json_utils.get_string(entry, "url")
        if not url:
            continue
        if url.startswith("//"):
            url = "https:" + url
        result.append(
            Thumbnail(
                url=url,
                width=json_utils.get_int(entry, "width"),
                height=json_utils.get_int(entry, "height"),
            )
        )
    return result


def _metadata_rows(next_response: dict[str, Any]) -> list[dict[str, Any]]:
    for content in json_utils.get_array(next_response, _METADATA_ROWS_PATH):
        renderer = json_utils.get_object(content, "videoSecondaryInfoRenderer")
        if renderer:
            return json_utils.get_array(
                renderer, "metadataRowContainer.metadataRowContainerRenderer.rows"
            )
    return []


def is_age_restricted_in_next(next_response: dict[str, Any] | None) -> bool:
    """The watch page lists an "Age-restricted" metadata row."""
    if not next_response:
        return False
    for row in _metadata_rows(next_response):
        title = json_utils.get_text(row, "metadataRowRenderer.title")
        if title and "Age-restricted" in title:
            return True
    return False


def parse_metadata(
    player_response: dict[str, Any],
    next_response: dict[str, Any] | None,
    *,
    age_restricted: bool = False,
) -> VideoMetadata:
    details = json_utils.get_object(player_response, "videoDetails")
    channel_id = json_utils.get_string(details, "channelId")
    keywords = [k for k in json_utils.get_array(details, "keywords") if isinstance(k, str)]

    return VideoMetadata(
        title=json_utils.get_string(details, "title", ""),
        duration=json_utils.get_int(details, "lengthSeconds"),
        uploader_name=json_utils.get_string(details, "author", ""),
        uploader_url=CHANNEL_URL + channel_id if channel_id else "",
        description=json_utils.get_string(details, "shortDescription", ""),
        category=json_utils.get_string(
            player_response, "microformat.playerMicroformatRenderer.category", ""
        ),
        view_count=json_utils.get_int(details, "viewCount"),
        age_limit=18 if age_restricted or is_age_restricted_in_next(next_response) else 0,
        tags=keywords,
        thumbnails=_thumbnails(player_response),
    )
