from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from .domain import Backend, SpeakerId


class EngineConfig(BaseModel):
    """Per-backend default speakers as persisted in config.json.

    A null value means "no default configured". Unknown keys written by
    other tools are ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    voicevox_default_speaker: Optional[Union[StrictInt, StrictStr]] = Field(
        None, description="VOICEVOX style id used when a request names none"
    )
    aivis_default_speaker: Optional[Union[StrictInt, StrictStr]] = Field(
        None, description="AivisSpeech style id used when a request names none"
    )
    macos_default_voice: Optional[StrictStr] = Field(
        None, description="Voice name passed to `say -v`"
    )

    def default_for(self, backend: Backend) -> Optional[SpeakerId]:
        if backend is Backend.VOICEVOX:
            return self.voicevox_default_speaker
        if backend is Backend.AIVIS:
            return self.aivis_default_speaker
        if backend is Backend.MACSAY:
            return self.macos_default_voice
        return None


CONFIG_KEYS = {
    Backend.VOICEVOX: "voicevox_default_speaker",
    Backend.AIVIS: "aivis_default_speaker",
    Backend.MACSAY: "macos_default_voice",
}
