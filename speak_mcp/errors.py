from __future__ import annotations


class SpeakError(Exception):
    """Base class for request-level failures.

    ``reason`` is a stable code the front-ends hand to clients; the
    message is the human-readable detail.
    """

    reason: str = "unexpected"


class InvalidRequestError(SpeakError):
    reason = "invalid_request"


class ResolutionError(SpeakError):
    """Raised before any engine is contacted."""


class UnconfiguredBackendError(ResolutionError):
    reason = "unconfigured_backend"


class UnknownBackendError(ResolutionError):
    reason = "unknown_backend"


class AdapterError(SpeakError):
    """Raised by a backend adapter while synthesizing or playing audio."""


class BackendUnavailableError(AdapterError):
    reason = "unavailable"


class InvalidSpeakerError(AdapterError):
    reason = "invalid_speaker"


class BackendTimeoutError(AdapterError):
    """A bounded step ran out of time.

    ``seconds`` is the bound that expired, when narrower than the request
    budget.
    """

    reason = "timeout"

    def __init__(self, message: str, seconds: float | None = None) -> None:
        super().__init__(message)
        self.seconds = seconds


class UnexpectedBackendError(AdapterError):
    reason = "unexpected"


class ConfigError(Exception):
    """The engine config file exists but cannot be used."""
