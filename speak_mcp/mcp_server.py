from __future__ import annotations

from typing import Any, Optional, Union

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from speak_mcp import __version__
from speak_mcp.backends import BackendRegistry
from speak_mcp.errors import SpeakError
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import Backend, DispatchResult
from speak_mcp.services import DispatchService


logger = get_logger(__name__)

SpeakerArg = Optional[Union[int, str]]


class SpeakTools:
    """Tool implementations behind the MCP server.

    Kept separate from FastMCP registration so they can be called
    directly. Failures become ``ToolError`` with a ``[reason] detail``
    message, which the protocol reports as an error result.
    """

    def __init__(
        self,
        *,
        dispatch_service: DispatchService,
        backend_registry: BackendRegistry,
        speakers_timeout_seconds: float = 5.0,
    ) -> None:
        self._dispatch = dispatch_service
        self._backends = backend_registry
        self._speakers_timeout_seconds = speakers_timeout_seconds

    @staticmethod
    def _outcome(result: DispatchResult) -> str:
        if result.ok:
            return result.detail or "spoken"
        raise ToolError(f"[{result.reason}] {result.detail}")

    async def speak(
        self,
        text: str,
        backend: Optional[str] = None,
        speaker: SpeakerArg = None,
        speed: Optional[float] = None,
    ) -> str:
        result = await self._dispatch.speak(text, backend, speaker, speed=speed)
        return self._outcome(result)

    async def speak_with(
        self,
        backend: Backend,
        text: str,
        speaker: SpeakerArg = None,
        speed: Optional[float] = None,
    ) -> str:
        result = await self._dispatch.speak(text, backend, speaker, speed=speed)
        return self._outcome(result)

    async def list_speakers(self, backend: str) -> list[dict[str, Any]]:
        try:
            parsed = Backend.parse(backend)
            if parsed is Backend.AUTO:
                raise ToolError("[unknown_backend] name a concrete backend")
            adapter = self._backends.get(parsed)
            speakers = await adapter.list_speakers(self._speakers_timeout_seconds)
        except SpeakError as exc:
            raise ToolError(f"[{exc.reason}] {exc}") from exc
        return [{"id": s.id, "display_name": s.display_name} for s in speakers]


def create_server(tools: SpeakTools) -> FastMCP:
    server = FastMCP("speak-mcp")

    @server.tool()
    async def speak(
        text: str,
        backend: Optional[str] = None,
        speaker: SpeakerArg = None,
        speed: Optional[float] = None,
    ) -> str:
        """Read text aloud.

        backend is one of auto, macsay, voicevox or aivis (default auto).
        speaker is a VOICEVOX/Aivis style id or a macOS voice name; when
        omitted the configured default is used. speed is words per minute
        for macsay and a speedScale multiplier for the HTTP engines.
        """
        return await tools.speak(text, backend, speaker, speed)

    @server.tool()
    async def speak_voicevox(
        text: str,
        speaker: Optional[int] = None,
        speed: Optional[float] = None,
    ) -> str:
        """Read text aloud with the VOICEVOX engine (port 50021 by default)."""
        return await tools.speak_with(Backend.VOICEVOX, text, speaker, speed)

    @server.tool()
    async def speak_aivis(
        text: str,
        speaker: Optional[int] = None,
        speed: Optional[float] = None,
    ) -> str:
        """Read text aloud with the AivisSpeech engine (port 10101 by default)."""
        return await tools.speak_with(Backend.AIVIS, text, speaker, speed)

    @server.tool()
    async def speak_macos(
        text: str,
        voice: Optional[str] = None,
        speed: Optional[int] = None,
    ) -> str:
        """Read text aloud with the macOS say command."""
        return await tools.speak_with(Backend.MACSAY, text, voice, speed)

    @server.tool()
    async def list_speakers(backend: str) -> list[dict[str, Any]]:
        """List the speakers (voices/styles) a backend offers right now."""
        return await tools.list_speakers(backend)

    logger.info("MCP server speak-mcp %s ready", __version__)
    return server
