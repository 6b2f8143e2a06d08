from __future__ import annotations

import asyncio
import re
from typing import Optional, Sequence

from speak_mcp import dispatch_state
from speak_mcp.errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    InvalidSpeakerError,
    UnexpectedBackendError,
)
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import Backend, DispatchState, Speaker, SpeakerId
from speak_mcp.process_runner import ProcessResult, run_process
from .base import BaseSpeechBackend


logger = get_logger(__name__)

# `say -v ?` lines look like: "Kyoko               ja_JP    # こんにちは"
_VOICE_LINE = re.compile(
    r"^(?P<name>\S.*?)\s+(?P<locale>[a-z]{2,3}[_-][A-Za-z0-9_-]+)\s+#"
)


def parse_voice_list(output: str) -> list[Speaker]:
    speakers: list[Speaker] = []
    for line in output.splitlines():
        match = _VOICE_LINE.match(line.strip())
        if not match:
            continue
        name = match.group("name").strip()
        speakers.append(
            Speaker(id=name, display_name=f"{name} ({match.group('locale')})")
        )
    return speakers


class LocalCommandBackend(BaseSpeechBackend):
    """Speaks through the OS speech command (macOS ``say``).

    The command is spawned directly from an argv list, never through a
    shell. Text starting with ``-`` is fed on stdin (``-f -``) so it cannot
    be read as an option.
    """

    backend = Backend.MACSAY

    def __init__(self, command: Sequence[str] = ("say",)) -> None:
        if not command:
            raise ValueError("speech command must not be empty")
        self._command = tuple(command)

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    def build_invocation(
        self,
        text: str,
        speaker_id: Optional[SpeakerId],
        speed: Optional[float],
    ) -> tuple[list[str], Optional[bytes]]:
        argv = list(self._command)
        if speaker_id is not None:
            argv += ["-v", str(speaker_id)]
        if speed is not None:
            argv += ["-r", str(int(round(speed)))]
        if text.startswith("-"):
            argv += ["-f", "-"]
            return argv, text.encode("utf-8")
        argv.append(text)
        return argv, None

    async def synthesize(
        self,
        text: str,
        speaker_id: Optional[SpeakerId],
        timeout: float,
        *,
        speed: Optional[float] = None,
    ) -> None:
        argv, stdin = self.build_invocation(text, speaker_id, speed)
        # say synthesizes and plays in one process
        dispatch_state.advance(DispatchState.PLAYING)
        result = await self._run(argv, timeout=timeout, input=stdin)

        if result.returncode == 0:
            logger.info("[SAY] spoke %d chars (voice=%s)", len(text), speaker_id)
            return

        tail = result.stderr_tail()
        if speaker_id is not None and "voice" in tail.lower():
            raise InvalidSpeakerError(f"unknown voice '{speaker_id}'")
        message = f"'{self._command[0]}' exited with status {result.returncode}"
        if tail:
            message = f"{message}: {tail}"
        raise UnexpectedBackendError(message)

    async def list_speakers(self, timeout: float) -> list[Speaker]:
        result = await self._run([*self._command, "-v", "?"], timeout=timeout)
        if result.returncode != 0:
            raise UnexpectedBackendError(
                f"'{self._command[0]} -v ?' exited with status {result.returncode}"
            )
        return parse_voice_list(result.stdout.decode("utf-8", errors="ignore"))

    async def _run(
        self,
        argv: Sequence[str],
        *,
        timeout: float,
        input: Optional[bytes] = None,
    ) -> ProcessResult:
        try:
            return await run_process(argv, timeout=timeout, input=input)
        except asyncio.TimeoutError as exc:
            raise BackendTimeoutError(
                f"'{self._command[0]}' did not exit in time", timeout
            ) from exc
        except OSError as exc:
            logger.warning("Cannot start %r: %s", self._command[0], exc)
            raise BackendUnavailableError(
                f"command '{self._command[0]}' could not be started"
            ) from exc
