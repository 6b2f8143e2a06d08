from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


class SpeakBody(BaseModel):
    """Request body for POST /v1/speak."""

    text: str = Field(..., description="Text to speak")
    backend: Optional[str] = Field(
        None, description="auto | macsay | voicevox | aivis (default auto)"
    )
    speaker: Optional[Union[int, str]] = Field(
        None, description="Backend-specific speaker id or voice name"
    )
    speed: Optional[float] = Field(
        None, gt=0, description="Words per minute for macsay, speedScale otherwise"
    )


class SpeakResponse(BaseModel):
    outcome: Literal["spoken", "failed"]
    detail: Optional[str] = None
    reason: Optional[str] = None
    backend: Optional[str] = None
    speaker_id: Optional[Union[int, str]] = None


class SpeakerModel(BaseModel):
    id: Union[int, str]
    display_name: str


class SpeakersResponse(BaseModel):
    backend: str
    speakers: List[SpeakerModel]


class HealthResponse(BaseModel):
    status: Literal["ok"]


class ReloadResponse(BaseModel):
    voicevox_default_speaker: Optional[Union[int, str]] = None
    aivis_default_speaker: Optional[Union[int, str]] = None
    macos_default_voice: Optional[str] = None
