from __future__ import annotations

from typing import Optional, Protocol

from speak_mcp.models import Backend, Speaker, SpeakerId


class BaseSpeechBackend(Protocol):
    """Interface every speech backend adapter implements.

    ``synthesize`` returns once the audio has been spoken and raises an
    ``AdapterError`` subclass otherwise. ``timeout`` is the whole budget
    left for this call, playback included.
    """

    backend: Backend

    async def synthesize(
        self,
        text: str,
        speaker_id: Optional[SpeakerId],
        timeout: float,
        *,
        speed: Optional[float] = None,
    ) -> None:
        """Speak ``text`` with the given speaker."""

    async def list_speakers(self, timeout: float) -> list[Speaker]:
        """Return the speakers/voices the engine currently offers."""
