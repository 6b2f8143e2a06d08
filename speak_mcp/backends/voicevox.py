from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import aiohttp

from speak_mcp.errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    InvalidSpeakerError,
    UnexpectedBackendError,
)
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import Backend, Speaker, SpeakerId
from speak_mcp.audio import AudioPlayer
from .base import BaseSpeechBackend


logger = get_logger(__name__)

# Body fragments VOICEVOX-compatible engines use when a style id is unknown.
_SPEAKER_MARKERS = ("speaker", "style", "話者", "スタイル")


def parse_speakers(payload: Any) -> list[Speaker]:
    """Flatten ``GET /speakers`` into one Speaker per style."""
    if not isinstance(payload, list):
        raise UnexpectedBackendError("/speakers did not return a list")
    speakers: list[Speaker] = []
    for entry in payload:
        name = entry.get("name", "?") if isinstance(entry, dict) else "?"
        styles = entry.get("styles", []) if isinstance(entry, dict) else []
        for style in styles:
            if not isinstance(style, dict) or "id" not in style:
                continue
            speakers.append(
                Speaker(
                    id=style["id"],
                    display_name=f"{name} ({style.get('name', style['id'])})",
                )
            )
    return speakers


class VoicevoxCompatibleBackend(BaseSpeechBackend):
    """Adapter for engines speaking the VOICEVOX HTTP API.

    Two calls produce the audio: ``POST /audio_query`` builds synthesis
    parameters for the text, ``POST /synthesis`` turns them into WAV. The
    WAV is then handed to the local audio player. Each HTTP step and the
    playback get their own timeout, all capped by the caller's deadline.
    """

    backend: Backend = Backend.VOICEVOX
    default_base_url: str = "http://localhost:50021"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        player: AudioPlayer,
        http_timeout_seconds: float = 30.0,
    ) -> None:
        self._base_url = (base_url or self.default_base_url).rstrip("/")
        self._player = player
        self._http_timeout_seconds = http_timeout_seconds

    @property
    def base_url(self) -> str:
        return self._base_url

    async def synthesize(
        self,
        text: str,
        speaker_id: Optional[SpeakerId],
        timeout: float,
        *,
        speed: Optional[float] = None,
    ) -> None:
        if speaker_id is None:
            raise InvalidSpeakerError("no speaker id given")

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        speaker = str(speaker_id)

        async with aiohttp.ClientSession() as session:
            query = await self._request(
                session,
                "POST",
                "/audio_query",
                params={"text": text, "speaker": speaker},
                step_timeout=self._step_timeout(deadline),
                speaker_id=speaker_id,
                expect_json=True,
            )
            if not isinstance(query, dict):
                raise UnexpectedBackendError("/audio_query did not return an object")
            if speed is not None:
                query["speedScale"] = speed

            wav = await self._request(
                session,
                "POST",
                "/synthesis",
                params={"speaker": speaker},
                json_body=query,
                step_timeout=self._step_timeout(deadline),
                speaker_id=speaker_id,
            )

        logger.info(
            "[%s] synthesized %d bytes (speaker=%s)", self.backend.label, len(wav), speaker
        )
        await self._player.play_wav(wav, timeout=self._remaining(deadline))

    async def list_speakers(self, timeout: float) -> list[Speaker]:
        async with aiohttp.ClientSession() as session:
            payload = await self._request(
                session,
                "GET",
                "/speakers",
                step_timeout=timeout,
                expect_json=True,
            )
        return parse_speakers(payload)

    def _remaining(self, deadline: float) -> float:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise BackendTimeoutError("request deadline passed")
        return remaining

    def _step_timeout(self, deadline: float) -> float:
        return min(self._http_timeout_seconds, self._remaining(deadline))

    async def _request(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        *,
        step_timeout: float,
        params: Optional[dict[str, str]] = None,
        json_body: Optional[dict[str, Any]] = None,
        speaker_id: Optional[SpeakerId] = None,
        expect_json: bool = False,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                timeout=aiohttp.ClientTimeout(total=step_timeout),
            ) as resp:
                if resp.status >= 400:
                    body = (await resp.text(errors="ignore"))[:200]
                    self._raise_for_status(path, resp.status, body, speaker_id)
                if expect_json:
                    return await resp.json(content_type=None)
                data = await resp.read()
                if not data:
                    raise UnexpectedBackendError(f"{path} returned an empty body")
                return data
        except asyncio.TimeoutError as exc:
            raise BackendTimeoutError(f"{path} timed out", step_timeout) from exc
        except aiohttp.ClientConnectorError as exc:
            logger.warning("[%s] cannot connect to %s: %s", self.backend.label, url, exc)
            raise BackendUnavailableError(f"cannot connect to {self._base_url}") from exc
        except json.JSONDecodeError as exc:
            raise UnexpectedBackendError(f"{path} returned malformed JSON") from exc
        except aiohttp.ClientError as exc:
            raise UnexpectedBackendError(f"{path} failed: {exc}") from exc

    def _raise_for_status(
        self,
        path: str,
        status: int,
        body: str,
        speaker_id: Optional[SpeakerId],
    ) -> None:
        logger.warning(
            "[%s] %s -> HTTP %d: %s", self.backend.label, path, status, body
        )
        lowered = body.lower()
        if (
            speaker_id is not None
            and 400 <= status < 500
            and any(marker in lowered for marker in _SPEAKER_MARKERS)
        ):
            raise InvalidSpeakerError(f"HTTP {status} for speaker {speaker_id}")
        raise UnexpectedBackendError(f"{path} returned HTTP {status}")


class VoicevoxBackend(VoicevoxCompatibleBackend):
    backend = Backend.VOICEVOX
    default_base_url = "http://localhost:50021"
