from __future__ import annotations

import asyncio
import json
import socket
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer

from speak_mcp.backends import BackendRegistry
from speak_mcp.models import Backend, EngineConfig, Speaker, SpeakerId
from speak_mcp.repositories import InMemoryEngineConfigRepository
from speak_mcp.services import BackendResolver, DispatchService


# Minimal RIFF header plus a few samples; players only need non-empty bytes.
FAKE_WAV = b"RIFF$\x00\x00\x00WAVEfmt " + b"\x00" * 32


_RECORDER = r'''
import json, os, sys, time
with open(__CFG__, encoding="utf-8") as fh:
    cfg = json.load(fh)
if cfg.get("pid"):
    with open(cfg["pid"], "w") as fh:
        fh.write(str(os.getpid()))
entry = {
    "argv": sys.argv[1:],
    "stdin": sys.stdin.read(),
    "files": {a: os.path.getsize(a) for a in sys.argv[1:] if os.path.isfile(a)},
}
with open(cfg["record"], "a", encoding="utf-8") as fh:
    fh.write(json.dumps(entry) + "\n")
sys.stdout.write(cfg.get("stdout", ""))
sys.stderr.write(cfg.get("stderr", ""))
sys.stdout.flush()
time.sleep(cfg.get("sleep", 0))
sys.exit(cfg.get("exit", 0))
'''


@dataclass
class FakeCommand:
    """A Python script standing in for `say` or an audio player."""

    command: tuple[str, ...]
    record_path: Path
    pid_path: Path

    def calls(self) -> list[dict[str, Any]]:
        if not self.record_path.exists():
            return []
        lines = self.record_path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line]

    def pid(self) -> int:
        return int(self.pid_path.read_text())


def make_fake_command(
    tmp_path: Path,
    *,
    name: str = "fake_say",
    exit_code: int = 0,
    stdout: str = "",
    stderr: str = "",
    sleep: float = 0.0,
) -> FakeCommand:
    record = tmp_path / f"{name}.jsonl"
    pid = tmp_path / f"{name}.pid"
    cfg = tmp_path / f"{name}.json"
    cfg.write_text(
        json.dumps(
            {
                "record": str(record),
                "pid": str(pid),
                "exit": exit_code,
                "stdout": stdout,
                "stderr": stderr,
                "sleep": sleep,
            }
        ),
        encoding="utf-8",
    )
    script = tmp_path / f"{name}.py"
    script.write_text(_RECORDER.replace("__CFG__", repr(str(cfg))), encoding="utf-8")
    return FakeCommand(
        command=(sys.executable, str(script)),
        record_path=record,
        pid_path=pid,
    )


class FakeBackend:
    """In-process adapter recording calls, optionally slow or failing."""

    def __init__(
        self,
        backend: Backend,
        *,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
        speakers: Optional[list[Speaker]] = None,
    ) -> None:
        self.backend = backend
        self.error = error
        self.delay = delay
        self.speakers = speakers or []
        self.calls: list[tuple[str, Optional[SpeakerId], float, Optional[float]]] = []
        self.cancelled = False

    async def synthesize(
        self,
        text: str,
        speaker_id: Optional[SpeakerId],
        timeout: float,
        *,
        speed: Optional[float] = None,
    ) -> None:
        self.calls.append((text, speaker_id, timeout, speed))
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error

    async def list_speakers(self, timeout: float) -> list[Speaker]:
        if self.error is not None:
            raise self.error
        return self.speakers


class RecordingPlayer:
    def __init__(self) -> None:
        self.played: list[tuple[bytes, float]] = []

    async def play_wav(self, wav: bytes, *, timeout: float) -> None:
        self.played.append((wav, timeout))


def build_service(
    *backends: FakeBackend,
    config: Optional[EngineConfig] = None,
    auto_order: tuple[str, ...] = ("macsay",),
    request_timeout_seconds: float = 5.0,
) -> DispatchService:
    if not backends:
        backends = (
            FakeBackend(Backend.MACSAY),
            FakeBackend(Backend.VOICEVOX),
            FakeBackend(Backend.AIVIS),
        )
    return DispatchService(
        backend_registry=BackendRegistry(backends),
        config_repo=InMemoryEngineConfigRepository(config),
        resolver=BackendResolver(auto_order),
        request_timeout_seconds=request_timeout_seconds,
    )


def make_engine_app(
    calls: list[tuple[str, dict[str, Any]]],
    *,
    query_status: int = 200,
    synthesis_status: int = 200,
    query_body: Optional[str] = None,
    speakers: Optional[list[dict[str, Any]]] = None,
    release: Optional[asyncio.Event] = None,
) -> web.Application:
    """Mock VOICEVOX-compatible engine recording every call."""

    async def audio_query(request: web.Request) -> web.StreamResponse:
        calls.append(("audio_query", dict(request.query)))
        if release is not None:
            await asyncio.wait_for(release.wait(), timeout=10)
        if query_status != 200:
            return web.json_response(
                {"detail": "指定されたスタイルが見つかりません (speaker not found)"},
                status=query_status,
            )
        if query_body is not None:
            return web.Response(text=query_body, content_type="application/json")
        return web.json_response(
            {"accent_phrases": [], "speedScale": 1.0, "outputSamplingRate": 24000}
        )

    async def synthesis(request: web.Request) -> web.StreamResponse:
        body = await request.json()
        calls.append(("synthesis", {"query": dict(request.query), "body": body}))
        if synthesis_status != 200:
            return web.json_response({"detail": "boom"}, status=synthesis_status)
        return web.Response(body=FAKE_WAV, content_type="audio/wav")

    async def list_speakers(request: web.Request) -> web.StreamResponse:
        calls.append(("speakers", {}))
        return web.json_response(speakers or [])

    app = web.Application()
    app.router.add_post("/audio_query", audio_query)
    app.router.add_post("/synthesis", synthesis)
    app.router.add_get("/speakers", list_speakers)
    return app


@asynccontextmanager
async def running_engine(app: web.Application) -> AsyncIterator[str]:
    server = TestServer(app, host="127.0.0.1")
    await server.start_server()
    try:
        yield f"http://127.0.0.1:{server.port}"
    finally:
        await server.close()


def closed_port_url() -> str:
    """Return a localhost URL nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"http://127.0.0.1:{port}"
