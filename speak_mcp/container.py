from __future__ import annotations

from functools import lru_cache

from speak_mcp.backends import BackendRegistry
from speak_mcp.config import settings
from speak_mcp.repositories import (
    FileEngineConfigRepository,
    default_config_paths,
)
from speak_mcp.services import BackendResolver, DispatchService


@lru_cache(maxsize=1)
def get_config_repo() -> FileEngineConfigRepository:
    """Return the process-wide config.json snapshot holder.

    Raises ConfigError on a corrupt file, which the CLI treats as a
    fatal startup failure.
    """
    return FileEngineConfigRepository(default_config_paths(settings.config_path))


@lru_cache(maxsize=1)
def get_backend_registry() -> BackendRegistry:
    return BackendRegistry(app_config=settings)


@lru_cache(maxsize=1)
def get_resolver() -> BackendResolver:
    return BackendResolver(settings.auto_order)


@lru_cache(maxsize=1)
def get_dispatch_service() -> DispatchService:
    return DispatchService(
        backend_registry=get_backend_registry(),
        config_repo=get_config_repo(),
        resolver=get_resolver(),
        request_timeout_seconds=settings.request_timeout_seconds,
    )
