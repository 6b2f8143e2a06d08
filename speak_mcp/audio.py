from __future__ import annotations

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Protocol, Sequence

from speak_mcp import dispatch_state
from speak_mcp.errors import BackendTimeoutError, UnexpectedBackendError
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import DispatchState
from speak_mcp.process_runner import run_process


logger = get_logger(__name__)


class AudioPlayer(Protocol):
    """Plays a complete WAV payload on the local machine."""

    async def play_wav(self, wav: bytes, *, timeout: float) -> None:
        ...


class CommandAudioPlayer(AudioPlayer):
    """Plays audio by handing a temporary WAV file to a player command.

    ``afplay`` on macOS, PowerShell's SoundPlayer on Windows, ``aplay``
    elsewhere. The file is removed once the player exits or is killed.
    """

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError("player command must not be empty")
        self._command = tuple(command)

    def build_argv(self, path: Path) -> list[str]:
        exe = os.path.basename(self._command[0]).lower()
        if exe in ("powershell", "powershell.exe", "pwsh", "pwsh.exe"):
            script = f"(New-Object System.Media.SoundPlayer '{path}').PlaySync()"
            return [self._command[0], "-NoProfile", "-Command", script]
        return [*self._command, str(path)]

    async def play_wav(self, wav: bytes, *, timeout: float) -> None:
        if not wav:
            raise UnexpectedBackendError("engine returned no audio")

        with tempfile.TemporaryDirectory(prefix="speak-mcp-") as tmp:
            path = Path(tmp) / "speech.wav"
            path.write_bytes(wav)
            argv = self.build_argv(path)
            dispatch_state.advance(DispatchState.PLAYING)
            try:
                result = await run_process(argv, timeout=timeout)
            except asyncio.TimeoutError as exc:
                raise BackendTimeoutError("audio playback timed out", timeout) from exc
            except OSError as exc:
                logger.error("Audio player %r could not be started: %s", argv[0], exc)
                raise UnexpectedBackendError(
                    f"audio player '{argv[0]}' could not be started"
                ) from exc

        if result.returncode != 0:
            message = f"audio player exited with status {result.returncode}"
            tail = result.stderr_tail()
            if tail:
                message = f"{message}: {tail}"
            raise UnexpectedBackendError(message)
        logger.info("[PLAY] %d bytes of audio played", len(wav))
