"""Throttling parameter (``n``) deobfuscation function extraction.

Streaming URLs of HTML5 clients carry an ``n`` query parameter; unless
it is transformed by the player's function, downloads are throttled to
a crawl.
"""

from __future__ import annotations

import re

import structlog

from tubegarr.domain.exceptions import DeobfuscationFailed, MalformedUpstreamData
from tubegarr.infrastructure.youtube.patterns import (
    PatternMatcher,
    group_with_index,
    match_first,
    match_group1,
)

log = structlog.get_logger(__name__)

_THROTTLING_PARAM_RE = re.compile(r"[&?]n=([^&]+)")

_SINGLE = r"[a-zA-Z0-9$_]"
_MULTI = _SINGLE + "+"
_ARRAY_ACCESS = r"\[(\d+)]"

FUNCTION_NAME_MATCHERS: tuple[PatternMatcher, ...] = (
    PatternMatcher(
        "nn_array_null_check",
        re.compile(
            _SINGLE + r'="nn"\[\+' + _MULTI + r"\." + _MULTI + r"]," + _MULTI
            + r"\(" + _MULTI + r"\)," + _MULTI + "=" + _MULTI + r"\." + _MULTI
            + r"\[" + _MULTI + r"]\|\|null\)&&\(" + _MULTI + "=(" + _MULTI + ")"
            + _ARRAY_ACCESS
        ),
        group_with_index,
    ),
    PatternMatcher(
        "nn_empty_string_call",
        re.compile(
            _SINGLE + r'="nn"\[\+' + _MULTI + r"\." + _MULTI + r"]," + _MULTI
            + r"\(" + _MULTI + r"\)," + _MULTI + "=" + _MULTI + r"\." + _MULTI
            + r"\[" + _MULTI + r"]\|\|null\).+\|\|(" + _MULTI + r')\(""\)'
        ),
    ),
    PatternMatcher(
        "set_n",
        re.compile(
            "," + _MULTI + r"\(" + _MULTI + r"\)," + _MULTI + "=" + _MULTI + r"\."
            + _MULTI + r"\[" + _MULTI + r"]\|\|null\)&&\(\b" + _MULTI + "=("
            + _MULTI + ")" + _ARRAY_ACCESS + r"\(" + _SINGLE + r"\)," + _MULTI
            + r'\.set\((?:"n+"|' + _MULTI + ")," + _MULTI + r"\)"
        ),
        group_with_index,
    ),
    PatternMatcher(
        "nn_get_empty_string_call",
        re.compile(
            _SINGLE + r'="nn"\[\+' + _MULTI + r"\." + _MULTI + r"]," + _MULTI
            + "=" + _MULTI + r"\.get\(" + _MULTI + r"\)\).+\|\|(" + _MULTI
            + r')\(""\)'
        ),
    ),
    PatternMatcher(
        "nn_get_array",
        re.compile(
            _SINGLE + r'="nn"\[\+' + _MULTI + r"\." + _MULTI + r"]," + _MULTI
            + "=" + _MULTI + r"\.get\(" + _MULTI + r"\)\)&&\(" + _MULTI + "=("
            + _MULTI + r")\[(\d+)]"
        ),
        group_with_index,
    ),
    PatternMatcher(
        "from_char_code_110",
        re.compile(
            r"\(" + _SINGLE + r"=String\.fromCharCode\(110\)," + _SINGLE + "="
            + _SINGLE + r"\.get\(" + _SINGLE + r"\)\)&&\(" + _SINGLE + "=("
            + _MULTI + ")(?:" + _ARRAY_ACCESS + r")?\(" + _SINGLE + r"\)"
        ),
        group_with_index,
    ),
    PatternMatcher(
        "get_n",
        re.compile(
            r'\.get\("n"\)\)&&\(' + _SINGLE + "=(" + _MULTI + ")(?:"
            + _ARRAY_ACCESS + r")?\(" + _SINGLE + r"\)"
        ),
        group_with_index,
    ),
)

_FUNCTION_BODY_SUFFIX = r'=\s*function([\S\s]*?\}\s*return [\w$]+?\.join\(""\)\s*\};)'
_FUNCTION_ARGUMENTS_RE = re.compile(r"function\s+[\w$]+\s*\(\s*([^)]*)\)")
_EARLY_RETURN_PREFIX = (
    r";\s*if\s*\(\s*typeof\s+" + _MULTI
    + r"\s*===?\s*([\"'])undefined\1\s*\)\s*return\s+"
)


def get_throttling_parameter(streaming_url: str) -> str | None:
    """Return the raw ``n`` value of a streaming URL, if any."""
    match = _THROTTLING_PARAM_RE.search(streaming_url)
    return match.group(1) if match else None


def _resolve_array_entry(player_code: str, array_name: str, index: int) -> str:
    pattern = "var " + re.escape(array_name) + r"\s*=\s*\[(.+?)][;,]"
    names = [
        name.strip()
        for name in match_group1(pattern, player_code, f"array {array_name}").split(",")
    ]
    try:
        return names[index]
    except IndexError:
        raise MalformedUpstreamData(
            f"Array index {index} out of bounds in {array_name}"
        ) from None


def get_function_name(player_code: str) -> str:
    """Locate the name of the ``n`` transform function.

    Some player versions call the function through an array of names;
    the array is then resolved to the real name.

    Raises:
        DeobfuscationFailed: none of the known patterns matched.
    """
    try:
        matcher, name, index = match_first(FUNCTION_NAME_MATCHERS, player_code)
        if index is not None:
            name = _resolve_array_entry(player_code, name, index)
    except MalformedUpstreamData as e:
        raise DeobfuscationFailed(
            "Could not find throttling deobfuscation function: "
            f"{e.reason}"
        ) from e
    log.debug("throttling_function_found", matcher=matcher.name, function=name)
    return name


def strip_early_return(function_code: str) -> str:
    """Remove the ``typeof X === "undefined"`` guard.

    Outside the full player, the guarded global never exists and the
    function would return its input unchanged.
    """
    match = _FUNCTION_ARGUMENTS_RE.search(function_code)
    if match is None:
        raise MalformedUpstreamData("Could not extract first argument name")
    first_argument = match.group(1).split(",")[0].strip()
    if not first_argument:
        raise MalformedUpstreamData("Could not extract first argument name")
    pattern = re.compile(
        _EARLY_RETURN_PREFIX + re.escape(first_argument) + ";", re.DOTALL
    )
    return pattern.sub(";", function_code, count=1)


def get_function_code(player_code: str, function_name: str) -> str:
    """Extract ``function NAME(...){...};`` with the early-return guard stripped.

    Raises:
        DeobfuscationFailed: the body could not be located.
    """
    pattern = re.compile(re.escape(function_name) + _FUNCTION_BODY_SUFFIX, re.DOTALL)
    try:
        body = match_group1(pattern, player_code, f"function {function_name}")
        return strip_early_return(f"function {function_name}{body}")
    except MalformedUpstreamData as e:
        raise DeobfuscationFailed(
            f"Could not get throttling deobfuscation function: {e.reason}"
        ) from e
