from __future__ import annotations

import asyncio
import time
from typing import Optional
from uuid import uuid4

from speak_mcp import dispatch_state
from speak_mcp import metrics as app_metrics
from speak_mcp.backends import BackendRegistry
from speak_mcp.errors import (
    AdapterError,
    BackendTimeoutError,
    BackendUnavailableError,
    InvalidRequestError,
    InvalidSpeakerError,
    ResolutionError,
    SpeakError,
    UnexpectedBackendError,
)
from speak_mcp.logging_utils import get_logger
from speak_mcp.models import (
    Backend,
    DispatchResult,
    DispatchState,
    ResolvedTarget,
    SpeakerId,
    SpeakRequest,
)
from speak_mcp.repositories import EngineConfigRepository
from .resolver import BackendHint, BackendResolver


logger = get_logger(__name__)


def describe_failure(
    exc: SpeakError,
    target: Optional[ResolvedTarget],
    budget_seconds: float,
) -> str:
    """Return the client-facing detail string for a failure."""
    if isinstance(exc, (ResolutionError, InvalidRequestError)) or target is None:
        return str(exc)

    label = target.backend.label
    if isinstance(exc, BackendUnavailableError):
        return f"{label} is not reachable; is the engine running?"
    if isinstance(exc, InvalidSpeakerError):
        return f"{label} rejected speaker {target.speaker_id}"
    if isinstance(exc, BackendTimeoutError):
        seconds = exc.seconds if exc.seconds is not None else budget_seconds
        return f"{label} did not finish within {seconds:.1f}s"
    return f"{label} failed: {str(exc)[:200]}"


class DispatchService:
    """Routes speak requests to a backend and folds every outcome into a result.

    One budget bounds synthesis and playback together; resolution runs
    before the clock matters. A failing backend is reported, never
    swapped for another one.
    """

    def __init__(
        self,
        *,
        backend_registry: BackendRegistry,
        config_repo: EngineConfigRepository,
        resolver: Optional[BackendResolver] = None,
        request_timeout_seconds: float = 120.0,
    ) -> None:
        self._backends = backend_registry
        self._config = config_repo
        self._resolver = resolver or BackendResolver()
        self._request_timeout_seconds = request_timeout_seconds

    @property
    def resolver(self) -> BackendResolver:
        return self._resolver

    async def speak(
        self,
        text: str,
        backend: BackendHint = None,
        speaker: Optional[SpeakerId] = None,
        *,
        speed: Optional[float] = None,
    ) -> DispatchResult:
        """Speak ``text``; always returns a DispatchResult."""
        try:
            request = SpeakRequest(
                text=text,
                backend=Backend.parse(backend),
                speaker=speaker,
                speed=speed,
            )
        except SpeakError as exc:
            logger.warning("Rejected speak request: %s", exc)
            self._record(None, exc.reason, 0.0)
            return DispatchResult.failed(exc.reason, str(exc))
        return await self.speak_request(request)

    async def speak_request(self, req: SpeakRequest) -> DispatchResult:
        tracker = dispatch_state.StateTracker(request_id=uuid4().hex[:8])
        token = dispatch_state.bind(tracker)
        try:
            return await self._dispatch(req, tracker)
        finally:
            dispatch_state.unbind(token)

    async def _dispatch(
        self,
        req: SpeakRequest,
        tracker: dispatch_state.StateTracker,
    ) -> DispatchResult:
        budget = self._request_timeout_seconds
        start = time.monotonic()
        target: Optional[ResolvedTarget] = None

        try:
            text = (req.text or "").strip()
            if not text:
                raise InvalidRequestError("text must not be empty")
            if req.speed is not None and req.speed <= 0:
                raise InvalidRequestError("speed must be positive")

            tracker.advance(DispatchState.RESOLVING)
            target = self._resolver.resolve(
                req.backend, req.speaker, self._config.snapshot()
            )
            adapter = self._backends.get(target.backend)

            tracker.advance(DispatchState.SYNTHESIZING)
            await asyncio.wait_for(
                adapter.synthesize(text, target.speaker_id, budget, speed=req.speed),
                timeout=budget,
            )
        except SpeakError as exc:
            result = self._failed(exc, target, budget, tracker)
        except asyncio.TimeoutError:
            result = self._failed(
                BackendTimeoutError("request budget exhausted"), target, budget, tracker
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Unexpected error in request=%s (state=%s)",
                tracker.request_id,
                tracker.state.value,
                exc_info=True,
            )
            result = self._failed(
                UnexpectedBackendError(type(exc).__name__), target, budget, tracker
            )
        else:
            assert target is not None
            result = DispatchResult.spoken(
                target, f"Spoke {len(text)} characters with {target.backend.label}"
            )
            logger.info(
                "request=%s spoken by %s (speaker=%s)",
                tracker.request_id,
                target.backend.label,
                target.speaker_id,
            )

        tracker.advance(DispatchState.DONE)
        self._record(target, result.reason, time.monotonic() - start)
        return result

    def _failed(
        self,
        exc: SpeakError,
        target: Optional[ResolvedTarget],
        budget: float,
        tracker: dispatch_state.StateTracker,
    ) -> DispatchResult:
        detail = describe_failure(exc, target, budget)
        logger.warning(
            "request=%s failed while %s: [%s] %s (%s)",
            tracker.request_id,
            tracker.state.value,
            exc.reason,
            detail,
            exc,
        )
        if isinstance(exc, AdapterError) and target is not None:
            app_metrics.record_backend_failure(target.backend.value, exc.reason)
        return DispatchResult.failed(exc.reason, detail, target=target)

    def _record(
        self,
        target: Optional[ResolvedTarget],
        reason: Optional[str],
        duration: float,
    ) -> None:
        backend = target.backend.value if target else "none"
        outcome = "failed" if reason else "spoken"
        app_metrics.record_request(backend, outcome, reason, duration)
