from .engine_config import (
    EngineConfigRepository,
    FileEngineConfigRepository,
    InMemoryEngineConfigRepository,
    default_config_paths,
    load_engine_config,
)

__all__ = [
    "EngineConfigRepository",
    "FileEngineConfigRepository",
    "InMemoryEngineConfigRepository",
    "default_config_paths",
    "load_engine_config",
]
