"""Confidence-gated intent extraction from transcripts."""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, Union

from .intents import Ignored, Intent, Play, SetVolume, Skip, Stop, Unrecognized, VolumeDirection

DEFAULT_CONFIDENCE_THRESHOLD = 70
DEFAULT_VOLUME = 50

PLAY_PHRASES = (
    "pon música de",
    "quiero escuchar",
    "search for",
    "reproduce",
    "put on",
    "ponme",
    "suena",
    "busca",
    "play",
    "toca",
    "pon",
)
STOP_KEYWORDS = ("para la música", "para", "stop", "detén", "deten", "pausa", "pause")
SKIP_KEYWORDS = ("otra canción", "siguiente", "skip", "next", "cambia")
VOLUME_KEYWORDS = ("volumen", "volume", "sube", "baja")
VOLUME_UP_KEYWORDS = ("sube", "subir", "más alto", "louder", "up")
VOLUME_DOWN_KEYWORDS = ("baja", "bajar", "más bajo", "quieter", "down")

# Whisper-style output carries sentence punctuation around the query.
_QUERY_STRIP = " \t\r\n.,;:!?¡¿\"'"
_NUMBER = re.compile(r"\b(\d+)\b")


def _keyword_pattern(words: Iterable[str]) -> re.Pattern[str]:
    ordered = sorted(words, key=len, reverse=True)
    return re.compile(r"\b(?:" + "|".join(re.escape(word) for word in ordered) + r")\b", re.IGNORECASE)


def _verb_pattern(phrases: Sequence[str]) -> re.Pattern[str]:
    ordered = sorted(phrases, key=len, reverse=True)
    alternation = "|".join(re.escape(phrase) for phrase in ordered)
    return re.compile(r"\b(?:" + alternation + r")\s+(?P<query>.+)$", re.IGNORECASE | re.DOTALL)


class CommandInterpreter:
    """Classify a transcript into play/stop/skip/volume or unrecognized.

    Classification order is fixed and the first match wins. Transcripts whose
    confidence is below ``threshold`` are ``Ignored`` without any matching.
    """

    def __init__(
        self,
        threshold: int = DEFAULT_CONFIDENCE_THRESHOLD,
        *,
        play_phrases: Sequence[str] = PLAY_PHRASES,
        stop_keywords: Sequence[str] = STOP_KEYWORDS,
        skip_keywords: Sequence[str] = SKIP_KEYWORDS,
        volume_keywords: Sequence[str] = VOLUME_KEYWORDS,
        default_volume: int = DEFAULT_VOLUME,
    ) -> None:
        self.threshold = threshold
        self.default_volume = default_volume
        self._play = _verb_pattern(play_phrases)
        self._stop = _keyword_pattern(stop_keywords)
        self._skip = _keyword_pattern(skip_keywords)
        self._volume = _keyword_pattern(volume_keywords)
        self._volume_up = _keyword_pattern(VOLUME_UP_KEYWORDS)
        self._volume_down = _keyword_pattern(VOLUME_DOWN_KEYWORDS)

    def interpret(self, transcript: str, confidence: int) -> Union[Intent, Ignored]:
        text = (transcript or "").strip()
        if confidence < self.threshold:
            return Ignored(text, confidence)
        play = self._match_play(text)
        if play is not None:
            return play
        if self._stop.search(text):
            return Stop()
        if self._skip.search(text):
            return Skip()
        if self._volume.search(text):
            return self._volume_intent(text)
        return Unrecognized(text)

    def _match_play(self, text: str) -> Optional[Play]:
        match = self._play.search(text)
        if not match:
            return None
        query = match.group("query").strip(_QUERY_STRIP)
        if not query:
            return None
        return Play(query)

    def _volume_intent(self, text: str) -> SetVolume:
        if self._volume_up.search(text):
            return SetVolume(VolumeDirection.UP)
        if self._volume_down.search(text):
            return SetVolume(VolumeDirection.DOWN)
        match = _NUMBER.search(text)
        level = int(match.group(1)) if match else self.default_volume
        return SetVolume(VolumeDirection.ABSOLUTE, max(0, min(100, level)))
