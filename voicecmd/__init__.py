"""Voice command recognition pipeline."""

from .session import ListeningSession, PipelineStatus, SessionRegistry, VoicePipeline
from .settings import VoiceSettings, get_settings

__all__ = [
    "ListeningSession",
    "PipelineStatus",
    "SessionRegistry",
    "VoicePipeline",
    "VoiceSettings",
    "get_settings",
]
