from __future__ import annotations

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from speak_mcp.config import settings
from speak_mcp.container import get_backend_registry, get_config_repo, get_dispatch_service
from speak_mcp.errors import AdapterError, ConfigError, SpeakError
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import (
    Backend,
    HealthResponse,
    ReloadResponse,
    SpeakBody,
    SpeakerModel,
    SpeakersResponse,
    SpeakResponse,
)


logger = get_logger(__name__)
router = APIRouter()

# Failure reason -> HTTP status for POST /v1/speak.
REASON_STATUS = {
    "invalid_request": 400,
    "unknown_backend": 400,
    "unconfigured_backend": 422,
    "invalid_speaker": 422,
    "unavailable": 503,
    "timeout": 504,
    "unexpected": 502,
}


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok")


@router.post("/v1/speak", response_model=SpeakResponse)
async def speak(body: SpeakBody) -> JSONResponse:
    result = await get_dispatch_service().speak(
        body.text,
        body.backend,
        body.speaker,
        speed=body.speed,
    )
    payload = SpeakResponse(**result.to_dict())
    status = 200 if result.ok else REASON_STATUS.get(result.reason or "", 502)
    return JSONResponse(status_code=status, content=payload.model_dump())


@router.get("/v1/speakers/{backend}", response_model=SpeakersResponse)
async def list_speakers(backend: str) -> SpeakersResponse:
    try:
        parsed = Backend.parse(backend)
        if parsed is Backend.AUTO:
            raise HTTPException(status_code=400, detail="name a concrete backend")
        adapter = get_backend_registry().get(parsed)
        speakers = await adapter.list_speakers(settings.speakers_timeout_seconds)
    except AdapterError as exc:
        logger.warning("Listing speakers for %s failed: %s", backend, exc)
        status = 504 if exc.reason == "timeout" else 503
        raise HTTPException(status_code=status, detail=f"[{exc.reason}] {exc}") from exc
    except SpeakError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return SpeakersResponse(
        backend=parsed.value,
        speakers=[SpeakerModel(id=s.id, display_name=s.display_name) for s in speakers],
    )


@router.post("/v1/config/reload", response_model=ReloadResponse)
async def reload_config() -> ReloadResponse:
    try:
        config = get_config_repo().reload()
    except ConfigError as exc:
        logger.error("Config reload failed; keeping previous snapshot: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return ReloadResponse(**config.model_dump())


@router.get("/metrics")
async def metrics() -> PlainTextResponse:
    payload = generate_latest()
    return PlainTextResponse(payload, media_type=CONTENT_TYPE_LATEST)
