from __future__ import annotations

from typing import Iterable, Optional, Union

from speak_mcp.errors import UnconfiguredBackendError
from speak_mcp.models import (
    CONFIG_KEYS,
    Backend,
    EngineConfig,
    ResolvedTarget,
    SpeakerId,
)


BackendHint = Union[Backend, str, None]


def auto_candidates(order: Iterable[BackendHint]) -> tuple[Backend, ...]:
    """Normalize an Auto policy: concrete backends, no repeats, MacSay last.

    Unknown names raise UnknownBackendError so a bad policy fails at
    startup rather than on the first request.
    """
    seen: list[Backend] = []
    for entry in order:
        backend = Backend.parse(entry)
        if backend is Backend.AUTO or backend in seen:
            continue
        seen.append(backend)
    if Backend.MACSAY in seen:
        seen.remove(Backend.MACSAY)
    seen.append(Backend.MACSAY)
    return tuple(seen)


def _normalize_speaker(speaker: Optional[SpeakerId]) -> Optional[SpeakerId]:
    if isinstance(speaker, str):
        speaker = speaker.strip()
        return speaker or None
    return speaker


def _target_for(
    backend: Backend,
    speaker: Optional[SpeakerId],
    config: EngineConfig,
) -> Optional[ResolvedTarget]:
    chosen = speaker if speaker is not None else _normalize_speaker(
        config.default_for(backend)
    )
    if chosen is None and backend is not Backend.MACSAY:
        return None
    # MacSay with no voice uses the OS default voice.
    return ResolvedTarget(backend=backend, speaker_id=chosen)


def resolve(
    request_backend: BackendHint,
    request_speaker: Optional[SpeakerId],
    config: EngineConfig,
    *,
    auto_order: Iterable[BackendHint] = (Backend.MACSAY,),
) -> ResolvedTarget:
    """Pick a concrete backend and speaker for one request.

    Pure and deterministic: no engine is contacted, so the same inputs
    always give the same target.
    """
    backend = Backend.parse(request_backend)
    speaker = _normalize_speaker(request_speaker)

    if backend is Backend.AUTO:
        for candidate in auto_candidates(auto_order):
            target = _target_for(candidate, speaker, config)
            if target is not None:
                return target

    target = _target_for(backend, speaker, config)
    if target is None:
        raise UnconfiguredBackendError(
            f"{backend.label} has no default speaker configured; "
            f"pass a speaker or set {CONFIG_KEYS[backend]} in config.json"
        )
    return target


class BackendResolver:
    """Holds a normalized Auto policy and resolves requests against it."""

    def __init__(self, auto_order: Iterable[BackendHint] = (Backend.MACSAY,)) -> None:
        self._auto_order = auto_candidates(auto_order)

    @property
    def auto_order(self) -> tuple[Backend, ...]:
        return self._auto_order

    def resolve(
        self,
        request_backend: BackendHint,
        request_speaker: Optional[SpeakerId],
        config: EngineConfig,
    ) -> ResolvedTarget:
        return resolve(
            request_backend,
            request_speaker,
            config,
            auto_order=self._auto_order,
        )
