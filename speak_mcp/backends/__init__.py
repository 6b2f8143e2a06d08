from .aivis import AivisBackend
from .base import BaseSpeechBackend
from .local_command import LocalCommandBackend
from .registry import BackendRegistry
from .voicevox import VoicevoxBackend, VoicevoxCompatibleBackend

__all__ = [
    "AivisBackend",
    "BackendRegistry",
    "BaseSpeechBackend",
    "LocalCommandBackend",
    "VoicevoxBackend",
    "VoicevoxCompatibleBackend",
]
