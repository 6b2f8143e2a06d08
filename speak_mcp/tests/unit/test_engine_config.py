from __future__ import annotations

import json
from pathlib import Path

import pytest

from speak_mcp.errors import ConfigError
from speak_mcp.models import Backend, EngineConfig
from speak_mcp.repositories import (
    FileEngineConfigRepository,
    default_config_paths,
    load_engine_config,
)


def _write(path: Path, payload) -> Path:
    path.write_text(
        payload if isinstance(payload, str) else json.dumps(payload),
        encoding="utf-8",
    )
    return path


def test_missing_file_means_all_defaults_null(tmp_path: Path) -> None:
    repo = FileEngineConfigRepository([tmp_path / "config.json"])

    assert repo.source is None
    assert repo.snapshot() == EngineConfig()
    for backend in (Backend.MACSAY, Backend.VOICEVOX, Backend.AIVIS):
        assert repo.snapshot().default_for(backend) is None


def test_valid_file_is_loaded(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "config.json",
        {
            "voicevox_default_speaker": 3,
            "aivis_default_speaker": None,
            "macos_default_voice": "Kyoko",
        },
    )

    config = FileEngineConfigRepository([path]).snapshot()

    assert config.default_for(Backend.VOICEVOX) == 3
    assert config.default_for(Backend.AIVIS) is None
    assert config.default_for(Backend.MACSAY) == "Kyoko"


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.json", {"aivis_default_speaker": 5, "theme": "dark"})
    assert load_engine_config(path).aivis_default_speaker == 5


@pytest.mark.parametrize(
    "payload",
    [
        "{not json",
        "[1, 2, 3]",
        {"voicevox_default_speaker": 1.5},
        {"macos_default_voice": 12},
    ],
)
def test_corrupt_file_raises_config_error(tmp_path: Path, payload) -> None:
    path = _write(tmp_path / "config.json", payload)
    with pytest.raises(ConfigError):
        FileEngineConfigRepository([path])


def test_first_existing_candidate_wins(tmp_path: Path) -> None:
    home = tmp_path / "home.json"
    local = _write(tmp_path / "local.json", {"voicevox_default_speaker": 2})

    repo = FileEngineConfigRepository([home, local])
    assert repo.source == local
    assert repo.snapshot().voicevox_default_speaker == 2

    _write(home, {"voicevox_default_speaker": 9})
    assert repo.reload().voicevox_default_speaker == 9


def test_reload_swaps_snapshot(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.json", {"aivis_default_speaker": 1})
    repo = FileEngineConfigRepository([path])
    before = repo.snapshot()

    _write(path, {"aivis_default_speaker": 2})
    repo.reload()

    assert before.aivis_default_speaker == 1
    assert repo.snapshot().aivis_default_speaker == 2


def test_corrupt_reload_keeps_previous_snapshot(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.json", {"aivis_default_speaker": 1})
    repo = FileEngineConfigRepository([path])

    _write(path, "{broken")
    with pytest.raises(ConfigError):
        repo.reload()

    assert repo.snapshot().aivis_default_speaker == 1


def test_snapshot_is_immutable() -> None:
    config = EngineConfig(voicevox_default_speaker=1)
    with pytest.raises(Exception):
        config.voicevox_default_speaker = 2  # type: ignore[misc]


def test_default_config_paths(tmp_path: Path) -> None:
    explicit = tmp_path / "custom.json"
    assert default_config_paths(str(explicit)) == [explicit]

    paths = default_config_paths()
    assert paths[0] == Path.home() / "speak-mcp" / "config.json"
