from __future__ import annotations

import pytest

from speak_mcp.errors import UnconfiguredBackendError, UnknownBackendError
from speak_mcp.models import Backend, EngineConfig, ResolvedTarget
from speak_mcp.services.resolver import BackendResolver, auto_candidates, resolve


EMPTY = EngineConfig()
CONFIGURED = EngineConfig(
    voicevox_default_speaker=3,
    aivis_default_speaker=888753760,
    macos_default_voice="Kyoko",
)


def test_explicit_macsay_without_config_uses_os_default_voice() -> None:
    target = resolve(Backend.MACSAY, None, EMPTY)
    assert target == ResolvedTarget(backend=Backend.MACSAY, speaker_id=None)


def test_macsay_uses_configured_voice_unless_overridden() -> None:
    assert resolve("macsay", None, CONFIGURED).speaker_id == "Kyoko"
    assert resolve("macsay", "Alex", CONFIGURED).speaker_id == "Alex"


@pytest.mark.parametrize("backend", [Backend.VOICEVOX, Backend.AIVIS])
def test_remote_backend_without_default_or_speaker_is_unconfigured(
    backend: Backend,
) -> None:
    with pytest.raises(UnconfiguredBackendError) as exc_info:
        resolve(backend, None, EMPTY)

    message = str(exc_info.value)
    assert backend.label in message
    assert f"{backend.value}_default_speaker" in message


def test_explicit_speaker_overrides_configured_default() -> None:
    assert resolve("voicevox", None, CONFIGURED).speaker_id == 3
    assert resolve("voicevox", 8, CONFIGURED).speaker_id == 8
    assert resolve("aivis", None, CONFIGURED).speaker_id == 888753760


def test_explicit_speaker_makes_unconfigured_backend_usable() -> None:
    target = resolve("aivis", 42, EMPTY)
    assert target == ResolvedTarget(backend=Backend.AIVIS, speaker_id=42)


def test_blank_speaker_counts_as_missing() -> None:
    with pytest.raises(UnconfiguredBackendError):
        resolve("voicevox", "   ", EMPTY)


@pytest.mark.parametrize("hint", [None, "", "auto", Backend.AUTO])
def test_auto_with_no_defaults_resolves_to_macsay(hint) -> None:
    target = resolve(hint, None, EMPTY)
    assert target.backend is Backend.MACSAY
    assert target.speaker_id is None


def test_auto_default_policy_ignores_configured_remote_engines() -> None:
    target = resolve(None, None, CONFIGURED)
    assert target == ResolvedTarget(backend=Backend.MACSAY, speaker_id="Kyoko")


def test_auto_policy_prefers_configured_remote_engine() -> None:
    order = ("voicevox", "macsay")
    target = resolve(None, None, CONFIGURED, auto_order=order)
    assert target == ResolvedTarget(backend=Backend.VOICEVOX, speaker_id=3)


def test_auto_policy_skips_engines_without_a_speaker() -> None:
    config = EngineConfig(aivis_default_speaker=7)
    order = ("voicevox", "aivis")
    target = resolve("auto", None, config, auto_order=order)
    assert target == ResolvedTarget(backend=Backend.AIVIS, speaker_id=7)


def test_auto_policy_falls_back_to_macsay_when_nothing_configured() -> None:
    target = resolve("auto", None, EMPTY, auto_order=("voicevox", "aivis"))
    assert target.backend is Backend.MACSAY


def test_resolution_is_idempotent() -> None:
    resolver = BackendResolver(("aivis", "voicevox"))
    first = resolver.resolve("auto", None, CONFIGURED)
    second = resolver.resolve("auto", None, CONFIGURED)
    assert first == second
    assert first.backend is Backend.AIVIS


def test_unknown_backend_name_is_rejected() -> None:
    with pytest.raises(UnknownBackendError) as exc_info:
        resolve("espeak", None, EMPTY)
    assert "espeak" in str(exc_info.value)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("say", Backend.MACSAY),
        ("macOS", Backend.MACSAY),
        ("VOICEVOX", Backend.VOICEVOX),
        ("AivisSpeech", Backend.AIVIS),
        ("aivis-speech", Backend.AIVIS),
    ],
)
def test_backend_aliases(name: str, expected: Backend) -> None:
    assert Backend.parse(name) is expected


def test_auto_candidates_always_end_with_macsay() -> None:
    assert auto_candidates(("aivis", "macsay", "voicevox")) == (
        Backend.AIVIS,
        Backend.VOICEVOX,
        Backend.MACSAY,
    )
    assert auto_candidates(("auto",)) == (Backend.MACSAY,)
    assert auto_candidates(()) == (Backend.MACSAY,)


def test_resolver_rejects_unknown_names_in_policy() -> None:
    with pytest.raises(UnknownBackendError):
        BackendResolver(("voicevox", "festival"))
