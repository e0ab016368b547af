from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# Flat key prefix -> section. ``log_level`` lands in ``logging.level``.
_PREFIXES: dict[str, str] = {
    "http_": "http",
    "youtube_": "youtube",
    "cache_": "cache",
    "log_": "logging",
}
_TOP_LEVEL: tuple[str, ...] = ("app_name", "environment")


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Merge ``layer`` into ``target`` in place; nested mappings merge, values replace."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one layer (defaults, YAML, ENV or CLI) into the sectioned shape.

    Layers may mix both spellings: ``{"cache": {"ttl_seconds": 60}}`` and
    ``{"cache_ttl_seconds": 60}`` are equivalent. Unknown keys are dropped.
    """
    out: dict[str, Any] = {}
    sections = set(_PREFIXES.values())

    for key, value in layer.items():
        if key in _TOP_LEVEL:
            out[key] = value
        elif key in sections and isinstance(value, Mapping):
            out.setdefault(key, {}).update(value)

    for key, value in layer.items():
        for prefix, section in _PREFIXES.items():
            if key.startswith(prefix):
                out.setdefault(section, {})[key[len(prefix):]] = value
                break

    return out


def _read_yaml(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(config_path)
    parsed = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"Config YAML must be a mapping, got: {type(parsed)!r}")
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Build the AppConfig from its layers, later layers winning:
    defaults < YAML file < TUBEGARR_* env vars < cli overrides

    The .env file only feeds the env layer; variables already set in the
    process environment are not overwritten. Nothing is written to disk.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers: list[Mapping[str, Any]] = [deepcopy(DEFAULT_CONFIG)]
    if config_path is not None:
        layers.append(_read_yaml(config_path))
    layers.append(EnvOverrides().to_update_dict())
    layers.append(cli_overrides or {})

    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
