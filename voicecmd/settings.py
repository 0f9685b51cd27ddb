"""Pipeline settings resolved from the environment."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class VoiceSettings(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_dir: str = Field(default=os.getenv("VOICE_MODEL_DIR", "models"))
    model_names: List[str] = Field(
        default_factory=lambda: _split_list(
            os.getenv("VOICE_MODEL_NAMES", "vosk-model-small-es-0.42,vosk-model-es-0.42")
        )
    )
    model_engine: str = Field(default=os.getenv("VOICE_MODEL_ENGINE", "vosk"), validate_default=True)
    whisper_device: str = Field(default=os.getenv("WHISPER_DEVICE", "cpu"))
    whisper_compute_type: str = Field(default=os.getenv("WHISPER_COMPUTE_TYPE", "int8"))
    language: str = Field(default=os.getenv("VOICE_LANGUAGE", "es"))
    sample_rate: int = Field(default=int(os.getenv("VOICE_SAMPLE_RATE", "16000")), gt=0)
    channels: int = Field(default=int(os.getenv("VOICE_CHANNELS", "1")), ge=1, le=2)
    silence_timeout_sec: float = Field(
        default=float(os.getenv("VOICE_SILENCE_TIMEOUT", "2.0")), gt=0
    )
    min_segment_bytes: int = Field(
        default=int(os.getenv("VOICE_MIN_SEGMENT_BYTES", "3200")), ge=0
    )
    max_segment_seconds: float = Field(
        default=float(os.getenv("VOICE_MAX_SEGMENT_SECONDS", "15")), gt=0
    )
    model_frame_bytes: int = Field(
        default=int(os.getenv("VOICE_MODEL_FRAME_BYTES", "4096")), gt=0
    )
    confidence_threshold: int = Field(
        default=int(os.getenv("VOICE_CONFIDENCE_THRESHOLD", "70")), ge=0, le=100
    )
    simulated_delay_sec: float = Field(
        default=float(os.getenv("VOICE_SIMULATED_DELAY", "2.0")), ge=0
    )
    recognition_workers: int = Field(
        default=int(os.getenv("VOICE_RECOGNITION_WORKERS", "2")), ge=1
    )
    max_pending_segments: int = Field(
        default=int(os.getenv("VOICE_MAX_PENDING_SEGMENTS", "32")), ge=1
    )
    shutdown_timeout_sec: float = Field(
        default=float(os.getenv("VOICE_SHUTDOWN_TIMEOUT", "10.0")), gt=0
    )
    disabled_backends: List[str] = Field(
        default_factory=lambda: _split_list(os.getenv("VOICE_DISABLED_BACKENDS", "")),
        validate_default=True,
    )
    api_keys: List[str] = Field(
        default_factory=lambda: _split_list(os.getenv("VOICE_API_KEYS", ""))
    )
    log_level: str = Field(default=os.getenv("VOICE_LOG_LEVEL", "INFO"))

    @field_validator("model_engine")
    @classmethod
    def _check_engine(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in {"vosk", "whisper"}:
            raise ValueError(f"unsupported model engine: {value}")
        return value

    @field_validator("disabled_backends")
    @classmethod
    def _lower_backends(cls, value: List[str]) -> List[str]:
        return [item.strip().lower() for item in value if item.strip()]

    @property
    def model_root(self) -> Path:
        return Path(self.model_dir)

    @property
    def bytes_per_second(self) -> int:
        return self.sample_rate * self.channels * 2


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the package logger."""
    logger = logging.getLogger("voicecmd")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)


@lru_cache()
def get_settings() -> VoiceSettings:
    return VoiceSettings()
