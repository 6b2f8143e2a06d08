from __future__ import annotations

import json
import sys
from pathlib import Path
from threading import RLock
from typing import Iterable, Optional, Protocol

from pydantic import ValidationError

from ..errors import ConfigError
from ..logging_utils import get_logger
from ..models import EngineConfig


logger = get_logger(__name__)


class EngineConfigRepository(Protocol):
    """Read access to the engine defaults snapshot."""

    def snapshot(self) -> EngineConfig:
        ...

    def reload(self) -> EngineConfig:
        ...


def default_config_paths(explicit: Optional[str] = None) -> list[Path]:
    """Return the config.json locations to try, most specific first."""
    if explicit:
        return [Path(explicit).expanduser()]
    paths = [Path.home() / "speak-mcp" / "config.json"]
    if sys.argv and sys.argv[0]:
        local = Path(sys.argv[0]).resolve().parent / "config.json"
        if local not in paths:
            paths.append(local)
    return paths


def load_engine_config(path: Path) -> EngineConfig:
    """Parse one config file; raise ConfigError if it is unusable."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a JSON object")

    try:
        return EngineConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"{path} has invalid values: {exc}") from exc


class FileEngineConfigRepository(EngineConfigRepository):
    """Loads config.json once and serves it as an immutable snapshot.

    ``reload`` re-reads the file and swaps the snapshot in one step; a
    corrupt file on reload leaves the previous snapshot in place.
    """

    def __init__(self, paths: Iterable[Path]) -> None:
        self._paths = list(paths)
        self._lock = RLock()
        self._snapshot = self._load()

    @property
    def source(self) -> Optional[Path]:
        return next((p for p in self._paths if p.is_file()), None)

    def _load(self) -> EngineConfig:
        path = self.source
        if path is None:
            logger.info(
                "No config.json found (tried %s); using empty defaults",
                ", ".join(str(p) for p in self._paths),
            )
            return EngineConfig()
        config = load_engine_config(path)
        logger.info("Loaded engine config from %s", path)
        return config

    def snapshot(self) -> EngineConfig:
        with self._lock:
            return self._snapshot

    def reload(self) -> EngineConfig:
        config = self._load()
        with self._lock:
            self._snapshot = config
        return config


class InMemoryEngineConfigRepository(EngineConfigRepository):
    """Fixed snapshot for tests and embedding."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self._snapshot = config or EngineConfig()

    def snapshot(self) -> EngineConfig:
        return self._snapshot

    def reload(self) -> EngineConfig:
        return self._snapshot
