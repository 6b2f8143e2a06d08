from __future__ import annotations

from typing import Dict, Iterable, Optional

from speak_mcp.config import AppConfig, settings
from speak_mcp.errors import UnknownBackendError
from speak_mcp.models import Backend
from speak_mcp.audio import CommandAudioPlayer
from .aivis import AivisBackend
from .base import BaseSpeechBackend
from .local_command import LocalCommandBackend
from .voicevox import VoicevoxBackend


def build_default_backends(app_config: AppConfig) -> list[BaseSpeechBackend]:
    player = CommandAudioPlayer(app_config.player_command)
    return [
        LocalCommandBackend(app_config.say_command),
        VoicevoxBackend(
            app_config.voicevox_url,
            player=player,
            http_timeout_seconds=app_config.http_timeout_seconds,
        ),
        AivisBackend(
            app_config.aivis_url,
            player=player,
            http_timeout_seconds=app_config.http_timeout_seconds,
        ),
    ]


class BackendRegistry:
    """Simple in-memory registry mapping each Backend to its adapter."""

    def __init__(
        self,
        backends: Optional[Iterable[BaseSpeechBackend]] = None,
        *,
        app_config: Optional[AppConfig] = None,
    ) -> None:
        if backends is None:
            backends = build_default_backends(app_config or settings)

        registered: Dict[Backend, BaseSpeechBackend] = {}
        for adapter in backends:
            if adapter.backend is Backend.AUTO:
                raise ValueError("adapters must serve a concrete backend")
            registered[adapter.backend] = adapter
        self._backends = registered

    def get(self, backend: Backend) -> BaseSpeechBackend:
        try:
            return self._backends[backend]
        except KeyError:
            raise UnknownBackendError(
                f"Unknown backend '{backend.value}'"
            ) from None

    def list_backends(self) -> Iterable[BaseSpeechBackend]:
        return self._backends.values()
