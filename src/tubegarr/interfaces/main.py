from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request

from tubegarr.infrastructure.config import AppConfig
from tubegarr.interfaces.app_state import AppState
from tubegarr.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def build_app(config: AppConfig) -> FastAPI:
    """Build the FastAPI app; configuration only.

    Resources (HTTP client, extraction engine) are created in lifespan().
    """
    app = FastAPI(
        title="tubegarr",
        description="YouTube stream extraction service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from tubegarr.interfaces.api.streams.router import router as streams_router

    app.include_router(streams_router)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
