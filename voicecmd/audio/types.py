"""Dataclasses shared across audio helpers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import numpy as np


@dataclass(slots=True)
class AudioChunk:
    """Raw 16-bit little-endian PCM as delivered by the transport."""

    data: bytes
    received_at: float = field(default_factory=time.monotonic)


@dataclass(frozen=True, slots=True)
class AudioSegment:
    """One finalized utterance from a single speaker."""

    speaker_id: str
    data: bytes
    sample_rate: int
    channels: int = 1
    chunk_count: int = 0
    started_at: float = 0.0
    ended_at: float = 0.0
    mean_amplitude: float = 0.0

    @classmethod
    def from_pcm(
        cls,
        speaker_id: str,
        data: bytes,
        sample_rate: int,
        *,
        channels: int = 1,
        chunk_count: int = 0,
        started_at: float = 0.0,
        ended_at: float = 0.0,
    ) -> "AudioSegment":
        return cls(
            speaker_id=speaker_id,
            data=data,
            sample_rate=sample_rate,
            channels=channels,
            chunk_count=chunk_count,
            started_at=started_at,
            ended_at=ended_at,
            mean_amplitude=mean_amplitude(data),
        )

    @property
    def byte_length(self) -> int:
        return len(self.data)

    @property
    def duration(self) -> float:
        frame_bytes = 2 * self.channels
        if not self.sample_rate:
            return 0.0
        return (len(self.data) // frame_bytes) / float(self.sample_rate)

    def samples(self) -> np.ndarray:
        return pcm_to_array(self.data)


def pcm_to_array(data: bytes) -> np.ndarray:
    usable = len(data) - (len(data) % 2)
    return np.frombuffer(data[:usable], dtype="<i2")


def mean_amplitude(data: bytes) -> float:
    """Mean absolute sample value of 16-bit signed PCM."""
    samples = pcm_to_array(data)
    if samples.size == 0:
        return 0.0
    return float(np.abs(samples.astype(np.int32)).mean())


def to_mono(samples: np.ndarray, channels: int) -> np.ndarray:
    if channels <= 1 or samples.size == 0:
        return samples
    usable = samples.size - (samples.size % channels)
    frames = samples[:usable].reshape(-1, channels).astype(np.int32)
    return frames.mean(axis=1).astype("<i2")
