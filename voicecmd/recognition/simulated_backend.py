"""Development stub returning canned transcripts."""

from __future__ import annotations

import logging
import random
import time
from typing import Sequence

from ..audio.types import AudioSegment
from .base import RecognitionBackend, RecognitionResult

LOGGER = logging.getLogger("voicecmd.recognition")

SIMULATED_TRANSCRIPTS = (
    "pon bad bunny",
    "reproduce reggaeton",
    "para la música",
    "siguiente canción",
)
SIMULATED_CONFIDENCE = 75


class SimulatedBackend(RecognitionBackend):
    kind = "simulated"
    concurrent_safe = True

    def __init__(
        self,
        transcripts: Sequence[str] = SIMULATED_TRANSCRIPTS,
        *,
        delay: float = 2.0,
        confidence: int = SIMULATED_CONFIDENCE,
        rng: random.Random | None = None,
        sleep=time.sleep,
    ) -> None:
        self.transcripts = tuple(transcripts)
        self.delay = delay
        self.confidence = confidence
        self._rng = rng or random.Random()
        self._sleep = sleep

    def initialize(self) -> None:
        LOGGER.warning("Simulated recognition active: transcripts are canned, not heard")

    def recognize(self, segment: AudioSegment) -> RecognitionResult:
        if self.delay:
            self._sleep(self.delay)
        text = self._rng.choice(self.transcripts) if self.transcripts else ""
        LOGGER.info("[simulated] speaker %s said %r", segment.speaker_id, text)
        return RecognitionResult(text, self.confidence)
