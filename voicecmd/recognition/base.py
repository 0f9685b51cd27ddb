"""Recognition backend contract and shared helpers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..audio.types import AudioSegment
from ..errors import MalformedResult

# Word-count buckets used when a backend exposes no confidence of its own.
# Tunable; not derived from a validated signal.
WORD_COUNT_CONFIDENCE = ((0, 0), (1, 60), (3, 75))
MANY_WORDS_CONFIDENCE = 85


@dataclass(frozen=True, slots=True)
class RecognitionResult:
    transcript: str
    confidence: int

    def __post_init__(self) -> None:
        if not isinstance(self.transcript, str):
            raise MalformedResult(f"transcript must be text, got {type(self.transcript).__name__}")
        object.__setattr__(self, "transcript", self.transcript.strip())
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))


def clamp_confidence(value: float | int) -> int:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedResult(f"confidence is not numeric: {value!r}") from exc
    if number != number:  # NaN
        raise MalformedResult("confidence is NaN")
    return int(round(max(0.0, min(100.0, number))))


def estimate_confidence(transcript: str) -> int:
    words = len(transcript.split())
    for limit, confidence in WORD_COUNT_CONFIDENCE:
        if words <= limit:
            return confidence
    return MANY_WORDS_CONFIDENCE


class RecognitionBackend(ABC):
    """Converts one finalized AudioSegment into text plus a 0-100 confidence."""

    kind: str = "abstract"
    # When False, recognize() calls are serialized through one worker thread.
    concurrent_safe: bool = False

    @abstractmethod
    def initialize(self) -> None:
        """Prepare the backend; raise BackendInitError (or AssetMissing) on failure."""

    @abstractmethod
    def recognize(self, segment: AudioSegment) -> RecognitionResult:
        """Return the transcript; raise RecognitionFailure on error."""

    def close(self) -> None:
        return None

    def describe(self) -> dict:
        return {"kind": self.kind}
