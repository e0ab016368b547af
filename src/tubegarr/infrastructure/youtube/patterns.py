"""Ordered first-match-wins pattern matcher lists.

The player script changes shape every few weeks; each matcher describes
one historical shape of the same call-site.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from tubegarr.domain.exceptions import MalformedUpstreamData


def _group_one(match: re.Match[str]) -> tuple[str, int | None]:
    return match.group(1), None


@dataclass(frozen=True)
class PatternMatcher:
    """One known shape: a compiled regex and how to read a match.

    ``extract`` returns ``(name, array_index)``; the index is set when the
    match points into a declared array of function names.
    """

    name: str
    regex: re.Pattern[str]
    extract: Callable[[re.Match[str]], tuple[str, int | None]] = _group_one


def group_with_index(match: re.Match[str]) -> tuple[str, int | None]:
    """Read ``(name, index)`` where group 2 is an optional numeric index."""
    index = match.group(2)
    return match.group(1), int(index) if index is not None else None


def match_first(
    matchers: Sequence[PatternMatcher], text: str
) -> tuple[PatternMatcher, str, int | None]:
    """Try ``matchers`` in order and return the first hit.

    Raises:
        MalformedUpstreamData: none of the known patterns matched.
    """
    for matcher in matchers:
        match = matcher.regex.search(text)
        if match is None:
            continue
        name, index = matcher.extract(match)
        return matcher, name, index
    raise MalformedUpstreamData("none of the known patterns matched")


def match_group1(pattern: str | re.Pattern[str], text: str, what: str) -> str:
    """Search ``pattern`` and return group 1, naming ``what`` on failure."""
    match = re.search(pattern, text)
    if match is None:
        raise MalformedUpstreamData(f"Could not find {what}")
    return match.group(1)
