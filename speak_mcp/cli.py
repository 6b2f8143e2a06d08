from __future__ import annotations

import argparse
import asyncio
import json
from typing import Optional, Union

from speak_mcp import __version__
from speak_mcp.config import settings
from speak_mcp.container import get_backend_registry, get_dispatch_service
from speak_mcp.errors import ConfigError, SpeakError
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import Backend


logger = get_logger(__name__)


def _speaker_arg(value: Optional[str]) -> Optional[Union[int, str]]:
    if value is None:
        return None
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="speak-mcp",
        description="Text-to-speech dispatch server for MCP tool-calling clients",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Run the MCP server over stdio (default)")

    http = sub.add_parser("serve-http", help="Run the HTTP API with uvicorn")
    http.add_argument("--host", default=settings.http_host, help="Bind address")
    http.add_argument("--port", type=int, default=settings.http_port, help="Bind port")

    say = sub.add_parser("say", help="Speak text once and exit")
    say.add_argument("text", help="Text to speak")
    say.add_argument("--backend", default=None, help="auto, macsay, voicevox or aivis")
    say.add_argument("--speaker", default=None, help="Speaker id or voice name")
    say.add_argument("--speed", type=float, default=None, help="Rate (wpm or speedScale)")

    speakers = sub.add_parser("speakers", help="List speakers offered by a backend")
    speakers.add_argument("backend", help="macsay, voicevox or aivis")

    return parser


def _serve_mcp() -> int:
    from speak_mcp.mcp_server import SpeakTools, create_server

    tools = SpeakTools(
        dispatch_service=get_dispatch_service(),
        backend_registry=get_backend_registry(),
        speakers_timeout_seconds=settings.speakers_timeout_seconds,
    )
    logger.info("Speak MCP server (multi-engine) starting on stdio")
    create_server(tools).run()
    return 0


def _serve_http(host: str, port: int) -> int:
    import uvicorn

    from speak_mcp.main import create_app

    uvicorn.run(create_app(), host=host, port=port)
    return 0


def _say(args: argparse.Namespace) -> int:
    service = get_dispatch_service()
    result = asyncio.run(
        service.speak(
            args.text,
            args.backend,
            _speaker_arg(args.speaker),
            speed=args.speed,
        )
    )
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.ok else 1


def _speakers(backend_name: str) -> int:
    try:
        backend = Backend.parse(backend_name)
        if backend is Backend.AUTO:
            logger.error("Name a concrete backend to list its speakers")
            return 1
        adapter = get_backend_registry().get(backend)
        speakers = asyncio.run(adapter.list_speakers(settings.speakers_timeout_seconds))
    except SpeakError as exc:
        logger.error("Cannot list speakers: [%s] %s", exc.reason, exc)
        return 1

    for speaker in speakers:
        print(f"{speaker.id}\t{speaker.display_name}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    command = args.command or "serve"

    try:
        # Loads config.json; a corrupt file is fatal here.
        get_dispatch_service()
    except (ConfigError, SpeakError) as exc:
        logger.error("Fatal startup error: %s", exc)
        return 1

    try:
        if command == "serve":
            return _serve_mcp()
        if command == "serve-http":
            return _serve_http(args.host, args.port)
        if command == "say":
            return _say(args)
        return _speakers(args.backend)
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
