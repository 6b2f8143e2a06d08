from __future__ import annotations

import time

from fastapi import FastAPI, Request

from speak_mcp import __version__
from speak_mcp.api import router as api_router
from speak_mcp.container import get_backend_registry, get_config_repo, get_dispatch_service
from speak_mcp.logging_utils import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="speak-mcp", version=__version__)

    @app.middleware("http")
    async def log_http_requests(request: Request, call_next):
        """Log method, path, status and latency of every HTTP call."""
        start = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "[HTTP] %s %s -> %d (%.1f ms, client=%s)",
                request.method,
                request.url.path,
                status_code,
                (time.monotonic() - start) * 1000,
                request.client.host if request.client else "-",
            )

    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        # Force-init singletons so that a corrupt config surfaces at startup.
        config_repo = get_config_repo()
        registry = get_backend_registry()
        service = get_dispatch_service()
        logger.info(
            "Dispatch ready (backends=%s, auto_order=%s, config=%s)",
            ",".join(b.backend.value for b in registry.list_backends()),
            ",".join(b.value for b in service.resolver.auto_order),
            config_repo.source or "defaults",
        )

    return app
