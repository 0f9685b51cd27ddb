"""Heuristic fallback that guesses a command from segment length and loudness."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..audio.types import AudioSegment
from ..errors import BackendInitError
from .base import RecognitionBackend, RecognitionResult

LOGGER = logging.getLogger("voicecmd.recognition")

PATTERN_CONFIDENCE = 70


@dataclass(frozen=True, slots=True)
class PatternRule:
    min_length: int
    max_length: int
    min_amplitude: float
    text: str

    def matches(self, length: int, amplitude: float) -> bool:
        return self.min_length <= length <= self.max_length and amplitude >= self.min_amplitude


DEFAULT_RULES: tuple[PatternRule, ...] = (
    PatternRule(20_000, 60_000, 1000, "pon bad bunny"),
    PatternRule(15_000, 40_000, 800, "reproduce reggaeton"),
    PatternRule(10_000, 30_000, 500, "para la música"),
    PatternRule(12_000, 35_000, 600, "siguiente canción"),
)


class PatternBackend(RecognitionBackend):
    kind = "pattern"
    concurrent_safe = True

    def __init__(self, rules: Sequence[PatternRule] = DEFAULT_RULES, confidence: int = PATTERN_CONFIDENCE) -> None:
        self.rules = tuple(rules)
        self.confidence = confidence

    def initialize(self) -> None:
        if not self.rules:
            raise BackendInitError("pattern backend has no rules")
        LOGGER.info("Pattern backend ready with %d rules (keyword-level accuracy only)", len(self.rules))

    def recognize(self, segment: AudioSegment) -> RecognitionResult:
        length = segment.byte_length
        amplitude = segment.mean_amplitude
        for rule in self.rules:
            if rule.matches(length, amplitude):
                LOGGER.debug("Pattern match for %d bytes / amplitude %.1f: %s", length, amplitude, rule.text)
                return RecognitionResult(rule.text, self.confidence)
        return RecognitionResult("", 0)

    def describe(self) -> dict:
        return {"kind": self.kind, "rules": len(self.rules)}
