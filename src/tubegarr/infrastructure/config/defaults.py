"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "tubegarr",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "follow_redirects": True,
        "max_retries": 2,
        "rate_limit_rps": 5.0,
        "rate_limit_burst": 10,
    },
    "youtube": {
        "hl": "en",
        "gl": "US",
        "fetch_ios": False,
        "discover_client_version": False,
    },
    "cache": {
        "max_items": 60,
        "trim_to": 30,
        "ttl_seconds": 3600,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
