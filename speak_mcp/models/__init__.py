from .api import (
    HealthResponse,
    ReloadResponse,
    SpeakBody,
    SpeakerModel,
    SpeakersResponse,
    SpeakResponse,
)
from .domain import (
    Backend,
    DispatchOutcome,
    DispatchResult,
    DispatchState,
    ResolvedTarget,
    Speaker,
    SpeakerId,
    SpeakRequest,
)
from .engine_config import CONFIG_KEYS, EngineConfig

__all__ = [
    "Backend",
    "CONFIG_KEYS",
    "DispatchOutcome",
    "DispatchResult",
    "DispatchState",
    "EngineConfig",
    "HealthResponse",
    "ReloadResponse",
    "ResolvedTarget",
    "SpeakBody",
    "Speaker",
    "SpeakerId",
    "SpeakerModel",
    "SpeakersResponse",
    "SpeakRequest",
    "SpeakResponse",
]
