from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from speak_mcp.errors import UnknownBackendError


SpeakerId = Union[int, str]


class Backend(str, Enum):
    AUTO = "auto"
    MACSAY = "macsay"
    VOICEVOX = "voicevox"
    AIVIS = "aivis"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "Backend | str | None") -> "Backend":
        """Map a backend name or alias to a Backend; None means AUTO."""
        if isinstance(value, Backend):
            return value
        if value is None:
            return cls.AUTO
        key = str(value).strip().lower().replace("-", "_")
        if not key:
            return cls.AUTO
        try:
            return _ALIASES[key]
        except KeyError:
            raise UnknownBackendError(f"Unknown backend '{value}'") from None


_LABELS = {
    Backend.AUTO: "Auto",
    Backend.MACSAY: "MacSay",
    Backend.VOICEVOX: "VOICEVOX",
    Backend.AIVIS: "Aivis",
}

_ALIASES = {
    "auto": Backend.AUTO,
    "macsay": Backend.MACSAY,
    "mac_say": Backend.MACSAY,
    "say": Backend.MACSAY,
    "mac": Backend.MACSAY,
    "macos": Backend.MACSAY,
    "voicevox": Backend.VOICEVOX,
    "aivis": Backend.AIVIS,
    "aivisspeech": Backend.AIVIS,
    "aivis_speech": Backend.AIVIS,
}


class DispatchOutcome(Enum):
    SPOKEN = "spoken"
    FAILED = "failed"


class DispatchState(Enum):
    RECEIVED = "received"
    RESOLVING = "resolving"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"
    DONE = "done"


@dataclass(frozen=True)
class SpeakRequest:
    """A single normalized "speak this text" call."""

    text: str
    backend: Backend = Backend.AUTO
    speaker: Optional[SpeakerId] = None
    # Words per minute for MacSay, speedScale multiplier for HTTP engines.
    speed: Optional[float] = None


@dataclass(frozen=True)
class ResolvedTarget:
    backend: Backend
    speaker_id: Optional[SpeakerId] = None


@dataclass(frozen=True)
class Speaker:
    """A voice exposed by a backend."""

    id: SpeakerId
    display_name: str


@dataclass(frozen=True)
class DispatchResult:
    """Uniform outcome of a speak request, whatever backend served it."""

    outcome: DispatchOutcome
    detail: Optional[str] = None
    reason: Optional[str] = None
    backend: Optional[Backend] = None
    speaker_id: Optional[SpeakerId] = None

    @property
    def ok(self) -> bool:
        return self.outcome is DispatchOutcome.SPOKEN

    @classmethod
    def spoken(cls, target: ResolvedTarget, detail: str) -> "DispatchResult":
        return cls(
            outcome=DispatchOutcome.SPOKEN,
            detail=detail,
            backend=target.backend,
            speaker_id=target.speaker_id,
        )

    @classmethod
    def failed(
        cls,
        reason: str,
        detail: str,
        *,
        target: Optional[ResolvedTarget] = None,
    ) -> "DispatchResult":
        return cls(
            outcome=DispatchOutcome.FAILED,
            detail=detail,
            reason=reason,
            backend=target.backend if target else None,
            speaker_id=target.speaker_id if target else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcome": self.outcome.value,
            "detail": self.detail,
            "reason": self.reason,
            "backend": self.backend.value if self.backend else None,
            "speaker_id": self.speaker_id,
        }
