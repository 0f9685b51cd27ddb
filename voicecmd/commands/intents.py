"""Structured command meanings extracted from transcripts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Optional


class VolumeDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    ABSOLUTE = "absolute"


@dataclass(frozen=True, slots=True)
class Intent:
    kind: ClassVar[str] = "intent"

    @property
    def actionable(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind}
        for key, value in asdict(self).items():
            payload[key] = value.value if isinstance(value, Enum) else value
        return payload


@dataclass(frozen=True, slots=True)
class Play(Intent):
    kind: ClassVar[str] = "play"
    query: str


@dataclass(frozen=True, slots=True)
class Stop(Intent):
    kind: ClassVar[str] = "stop"


@dataclass(frozen=True, slots=True)
class Skip(Intent):
    kind: ClassVar[str] = "skip"


@dataclass(frozen=True, slots=True)
class SetVolume(Intent):
    kind: ClassVar[str] = "volume"
    direction: VolumeDirection
    level: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Unrecognized(Intent):
    """Marker handed to the caller so it can show a "not understood" notice."""

    kind: ClassVar[str] = "unrecognized"
    raw: str

    @property
    def actionable(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Ignored:
    """Transcript below the confidence gate; never reaches the caller."""

    kind: ClassVar[str] = "ignored"
    transcript: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "transcript": self.transcript, "confidence": self.confidence}
