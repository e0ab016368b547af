"""Shared test fixtures for the tubegarr test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from youtube_samples import PLAYER_JS, FakeTransport, make_player_response


@pytest.fixture()
def player_js() -> str:
    return PLAYER_JS


@pytest.fixture()
def player_response_factory() -> Callable[..., dict[str, Any]]:
    return make_player_response


@pytest.fixture()
def fake_transport_cls() -> type[FakeTransport]:
    return FakeTransport
