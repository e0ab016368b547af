"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import httpx
from starlette.datastructures import State

from tubegarr.application.use_cases import StreamInfoUseCase
from tubegarr.infrastructure.config import AppConfig


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient

    # Application Services
    stream_info_uc: StreamInfoUseCase
