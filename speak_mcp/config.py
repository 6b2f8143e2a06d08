from __future__ import annotations

import os
import shlex
import sys
from dataclasses import dataclass, field


def _split_command(value: str) -> tuple[str, ...]:
    return tuple(shlex.split(value, posix=os.name != "nt"))


def _default_player_command() -> str:
    if sys.platform == "darwin":
        return "afplay"
    if sys.platform == "win32":
        return "powershell"
    return "aplay -q"


def _auto_order_from_env() -> tuple[str, ...]:
    raw = os.getenv("SPEAK_MCP_AUTO_ORDER", "macsay")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass
class AppConfig:
    """Process settings loaded from environment.

    Engine defaults (speaker ids, voices) live in config.json and are
    handled by the engine config repository; this holds the knobs that
    decide where engines are and how long we wait for them.
    """

    config_path: str | None = os.getenv("SPEAK_MCP_CONFIG") or None

    say_command: tuple[str, ...] = field(
        default_factory=lambda: _split_command(
            os.getenv("SPEAK_MCP_SAY_COMMAND", "say")
        )
    )
    player_command: tuple[str, ...] = field(
        default_factory=lambda: _split_command(
            os.getenv("SPEAK_MCP_PLAYER_COMMAND", _default_player_command())
        )
    )

    voicevox_url: str = os.getenv("SPEAK_MCP_VOICEVOX_URL", "http://localhost:50021")
    aivis_url: str = os.getenv("SPEAK_MCP_AIVIS_URL", "http://localhost:10101")

    # Whole-request budget shared by synthesis and playback.
    request_timeout_seconds: float = float(
        os.getenv("SPEAK_MCP_REQUEST_TIMEOUT_SECONDS", "120")
    )
    # Per-call bound for each HTTP step; the request budget still caps it.
    http_timeout_seconds: float = float(
        os.getenv("SPEAK_MCP_HTTP_TIMEOUT_SECONDS", "30")
    )
    speakers_timeout_seconds: float = float(
        os.getenv("SPEAK_MCP_SPEAKERS_TIMEOUT_SECONDS", "5")
    )

    # Backends Auto may pick, in order. MacSay is always appended last.
    auto_order: tuple[str, ...] = field(default_factory=_auto_order_from_env)

    http_host: str = os.getenv("SPEAK_MCP_HTTP_HOST", "127.0.0.1")
    http_port: int = int(os.getenv("SPEAK_MCP_HTTP_PORT", "8080"))


settings = AppConfig()
