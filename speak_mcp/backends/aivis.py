from __future__ import annotations

from speak_mcp.models import Backend
from .voicevox import VoicevoxCompatibleBackend


class AivisBackend(VoicevoxCompatibleBackend):
    """AivisSpeech engine; same HTTP schema as VOICEVOX on its own port."""

    backend = Backend.AIVIS
    default_base_url = "http://localhost:10101"
