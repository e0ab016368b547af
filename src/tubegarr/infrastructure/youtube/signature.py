"""Signature timestamp and signature deobfuscation function extraction."""

from __future__ import annotations

import re

import structlog

from tubegarr.domain.exceptions import DeobfuscationFailed, MalformedUpstreamData
from tubegarr.infrastructure.youtube.patterns import (
    PatternMatcher,
    match_first,
    match_group1,
)

log = structlog.get_logger(__name__)

DEOBFUSCATION_FUNCTION_NAME = "deobfuscate"

STS_MATCHERS: tuple[PatternMatcher, ...] = (
    PatternMatcher("signature_timestamp", re.compile(r"signatureTimestamp[=:](\d+)")),
    PatternMatcher("sts_short", re.compile(r"\bsts\s*:\s*(\d{5})")),
)

FUNCTION_NAME_MATCHERS: tuple[PatternMatcher, ...] = (
    PatternMatcher(
        "decode_uri_h_s",
        re.compile(r"\bm=([a-zA-Z0-9$]{2,})\(decodeURIComponent\(h\.s\)\)"),
    ),
    PatternMatcher(
        "decode_uri_c",
        re.compile(r"\bc&&\(c=([a-zA-Z0-9$]{2,})\(decodeURIComponent\(c\)\)"),
    ),
    PatternMatcher(
        "split_a",
        re.compile(
            r"(?:\b|[^a-zA-Z0-9$])([a-zA-Z0-9$]{2,})\s*=\s*function\(\s*a\s*\)"
            r'\s*\{\s*a\s*=\s*a\.split\(\s*""\s*\)'
        ),
    ),
    PatternMatcher(
        "split_any_argument",
        re.compile(r'([\w$]+)\s*=\s*function\((\w+)\)\{\s*\2=\s*\2\.split\(""\)\s*;'),
    ),
)

_HELPER_OBJECT_NAME_RE = re.compile(r";([A-Za-z0-9_$]{2,})\...\(")


def get_signature_timestamp(player_code: str) -> int:
    """Extract the signature timestamp (``sts``) the player was built with.

    Raises:
        MalformedUpstreamData: no timestamp, or one that is not a number.
    """
    try:
        _, raw, _ = match_first(STS_MATCHERS, player_code)
    except MalformedUpstreamData as e:
        raise MalformedUpstreamData(
            "Could not extract signature timestamp from JavaScript code"
        ) from e
    try:
        return int(raw)
    except ValueError as e:
        raise MalformedUpstreamData(
            "Could not convert signature timestamp to a number"
        ) from e


def get_deobfuscation_function_name(player_code: str) -> str:
    try:
        matcher, name, _ = match_first(FUNCTION_NAME_MATCHERS, player_code)
    except MalformedUpstreamData as e:
        raise DeobfuscationFailed(
            "Could not find deobfuscation function: none of the known patterns matched"
        ) from e
    log.debug("signature_function_found", matcher=matcher.name, function=name)
    return name


def _get_function_source(player_code: str, name: str) -> str:
    pattern = "(" + re.escape(name) + r"=function\([a-zA-Z0-9_]+\)\{.+?\})"
    return "var " + match_group1(pattern, player_code, f"function {name}")


def _get_helper_object(player_code: str, helper_name: str) -> str:
    pattern = "(var " + re.escape(helper_name) + r"=\{(?:.|\n)+?\}\};)"
    return match_group1(pattern, player_code, f"helper object {helper_name}").replace(
        "\n", ""
    )


def get_deobfuscation_code(player_code: str) -> str:
    """Build a self-contained unit exposing ``deobfuscate(a)``.

    The unit is the helper object, the signature function and a wrapper
    calling it, in that order.

    Raises:
        DeobfuscationFailed: any of the pieces could not be located.
    """
    try:
        name = get_deobfuscation_function_name(player_code)
        function = _get_function_source(player_code, name)
        helper_name = match_group1(
            _HELPER_OBJECT_NAME_RE, function, "helper object name"
        )
        helper = _get_helper_object(player_code, helper_name)
    except MalformedUpstreamData as e:
        raise DeobfuscationFailed(
            f"Could not parse deobfuscation function: {e.reason}"
        ) from e

    caller = f"function {DEOBFUSCATION_FUNCTION_NAME}(a){{return {name}(a);}}"
    return f"{helper}{function};{caller}"
