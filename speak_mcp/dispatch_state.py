from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Optional

from speak_mcp.logging_utils import get_logger
from speak_mcp.models import DispatchState


logger = get_logger(__name__)


class StateTracker:
    """Mutable per-request state shared with the adapter task."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self.state = DispatchState.RECEIVED

    def advance(self, state: DispatchState) -> None:
        if state is self.state:
            return
        logger.debug(
            "request=%s %s -> %s", self.request_id, self.state.value, state.value
        )
        self.state = state


_current: ContextVar[Optional[StateTracker]] = ContextVar(
    "speak_mcp_dispatch_state", default=None
)


def bind(tracker: StateTracker) -> Token:
    return _current.set(tracker)


def unbind(token: Token) -> None:
    _current.reset(token)


def current() -> Optional[StateTracker]:
    return _current.get()


def advance(state: DispatchState) -> None:
    """Record a state change for the request running in this context."""
    tracker = current()
    if tracker is not None:
        tracker.advance(state)
