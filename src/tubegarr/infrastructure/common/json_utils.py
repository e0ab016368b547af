"""Typed access helpers over parsed JSON trees.

Backend responses are deeply nested and fields appear and disappear
between deployments, so every getter takes a default instead of raising.
Paths are dotted (``"playabilityStatus.status"``).
"""

from __future__ import annotations

import json
from typing import Any

from tubegarr.domain.exceptions import MalformedUpstreamData


def parse(text: str) -> dict[str, Any]:
    """Parse a JSON object, raising ``MalformedUpstreamData`` on anything else."""
    try:
        value = json.loads(text)
    except (ValueError, TypeError) as e:
        raise MalformedUpstreamData(f"Could not parse JSON: {e}") from e
    if not isinstance(value, dict):
        raise MalformedUpstreamData(
            f"Expected a JSON object, got {type(value).__name__}"
        )
    return value


def dumps(value: Any) -> str:
    """Serialize compactly (the backend does not care about whitespace)."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _walk(data: Any, path: str) -> Any:
    current = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def get_object(data: Any, path: str) -> dict[str, Any]:
    value = _walk(data, path)
    return value if isinstance(value, dict) else {}


def get_array(data: Any, path: str) -> list[Any]:
    value = _walk(data, path)
    return value if isinstance(value, list) else []


def get_string(data: Any, path: str, default: str | None = None) -> str | None:
    value = _walk(data, path)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def get_int(data: Any, path: str, default: int = -1) -> int:
    """Return an int, accepting the numeric strings the backend often sends."""
    value = _walk(data, path)
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def get_bool(data: Any, path: str, default: bool = False) -> bool:
    value = _walk(data, path)
    return value if isinstance(value, bool) else default


def has(data: Any, path: str) -> bool:
    return _walk(data, path) is not None


def get_text(data: Any, path: str) -> str | None:
    """Read a backend "text object": either ``simpleText`` or joined ``runs``."""
    obj = get_object(data, path)
    if not obj:
        return None
    simple = obj.get("simpleText")
    if isinstance(simple, str):
        return simple
    runs = obj.get("runs")
    if isinstance(runs, list):
        parts = [run.get("text", "") for run in runs if isinstance(run, dict)]
        joined = "".join(parts)
        return joined or None
    return None
