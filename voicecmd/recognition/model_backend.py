"""Model-backed recognition (Vosk by default, faster-whisper optional)."""

from __future__ import annotations

import json
import logging
import math
import threading
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

import numpy as np

try:  # pragma: no cover - optional heavy dependency
    import vosk  # type: ignore
except Exception:  # pragma: no cover
    vosk = None  # type: ignore

try:  # pragma: no cover - optional heavy dependency
    from faster_whisper import WhisperModel  # type: ignore
except Exception:  # pragma: no cover
    WhisperModel = None  # type: ignore

from ..audio.types import AudioSegment, to_mono
from ..errors import AssetMissing, BackendInitError, MalformedResult, RecognitionFailure
from .base import RecognitionBackend, RecognitionResult, clamp_confidence, estimate_confidence

LOGGER = logging.getLogger("voicecmd.recognition")

WHISPER_SAMPLE_RATE = 16000
MODEL_DOWNLOAD_URL = "https://alphacephei.com/vosk/models/{name}.zip"


def install_instructions(model_dir: Path, model_names: Sequence[str]) -> str:
    name = model_names[0] if model_names else "vosk-model-small-es-0.42"
    lines = [
        "Recognition model not installed. To enable model-backed recognition:",
        f"  1. mkdir -p {model_dir}",
        f"  2. python scripts/install_model.py --name {name} --model-dir {model_dir}",
        f"     (or download {MODEL_DOWNLOAD_URL.format(name=name)} and unzip it into {model_dir})",
        "  3. pip install vosk",
        "  4. Restart the service.",
    ]
    return "\n".join(lines)


def iter_windows(data: bytes, frame_bytes: int) -> Iterator[bytes]:
    step = max(2, frame_bytes - (frame_bytes % 2))
    view = memoryview(data)
    for offset in range(0, len(data), step):
        yield bytes(view[offset : offset + step])


class ModelBackend(RecognitionBackend):
    """Wraps an on-disk acoustic/language model.

    The model is loaded once by ``initialize``; a missing asset raises
    ``AssetMissing`` and is never downloaded here. The Vosk engine is fed in
    ``frame_bytes`` windows; faster-whisper takes the whole segment as one
    float array.
    """

    kind = "model"
    concurrent_safe = False

    def __init__(
        self,
        model_dir: Path | str,
        model_names: Sequence[str],
        *,
        engine: str = "vosk",
        frame_bytes: int = 4096,
        language: str | None = None,
        whisper_device: str = "cpu",
        whisper_compute_type: str = "int8",
    ) -> None:
        self.model_dir = Path(model_dir)
        self.model_names = list(model_names)
        self.engine = engine
        self.frame_bytes = frame_bytes
        self.language = language
        self.whisper_device = whisper_device
        self.whisper_compute_type = whisper_compute_type
        self.model_path: Optional[Path] = None
        self._model = None
        self._lock = threading.Lock()

    def candidate_paths(self) -> List[Path]:
        return [self.model_dir / name for name in self.model_names]

    def find_asset(self) -> Optional[Path]:
        for path in self.candidate_paths():
            if path.exists():
                return path
        return None

    def initialize(self) -> None:
        asset = self.find_asset()
        if asset is None:
            raise AssetMissing(self.candidate_paths())
        if self.engine == "whisper":
            self._model = self._load_whisper(asset)
        else:
            self._model = self._load_vosk(asset)
        self.model_path = asset
        LOGGER.info("Model backend (%s) loaded from %s", self.engine, asset)

    def _load_vosk(self, asset: Path):
        if vosk is None:
            raise BackendInitError("vosk is not installed (pip install vosk)")
        try:
            vosk.SetLogLevel(-1)
            return vosk.Model(str(asset))
        except Exception as exc:
            raise BackendInitError(f"Failed to load Vosk model at {asset}: {exc}") from exc

    def _load_whisper(self, asset: Path):
        if WhisperModel is None:
            raise BackendInitError("faster-whisper is not installed (pip install faster-whisper)")
        try:
            return WhisperModel(
                str(asset),
                device=self.whisper_device,
                compute_type=self.whisper_compute_type,
            )
        except Exception as exc:
            raise BackendInitError(f"Failed to load Whisper model at {asset}: {exc}") from exc

    def recognize(self, segment: AudioSegment) -> RecognitionResult:
        if self._model is None:
            raise RecognitionFailure("model backend used before initialize()")
        mono = to_mono(segment.samples(), segment.channels)
        with self._lock:
            if self.engine == "whisper":
                return self._recognize_whisper(mono, segment.sample_rate)
            return self._recognize_vosk(mono.tobytes(), segment.sample_rate)

    def _recognize_vosk(self, pcm: bytes, sample_rate: int) -> RecognitionResult:
        texts: List[str] = []
        confidences: List[float] = []
        try:
            recognizer = vosk.KaldiRecognizer(self._model, float(sample_rate))
            recognizer.SetWords(True)
            for window in iter_windows(pcm, self.frame_bytes):
                if recognizer.AcceptWaveform(window):
                    _collect_vosk(recognizer.Result(), texts, confidences)
            _collect_vosk(recognizer.FinalResult(), texts, confidences)
        except RecognitionFailure:
            raise
        except Exception as exc:
            raise RecognitionFailure(f"Vosk recognition failed: {exc}") from exc
        transcript = " ".join(texts)
        if confidences:
            confidence = clamp_confidence(sum(confidences) / len(confidences) * 100)
        else:
            confidence = estimate_confidence(transcript)
        return RecognitionResult(transcript, confidence)

    def _recognize_whisper(self, mono: np.ndarray, sample_rate: int) -> RecognitionResult:
        audio = mono.astype(np.float32) / 32768.0
        if sample_rate != WHISPER_SAMPLE_RATE:
            audio = _resample(audio, sample_rate, WHISPER_SAMPLE_RATE)
        try:
            segments, _info = self._model.transcribe(audio, language=self.language, beam_size=5)
            pieces, logprobs = _summarize_whisper(segments)
        except RecognitionFailure:
            raise
        except Exception as exc:
            raise RecognitionFailure(f"Whisper recognition failed: {exc}") from exc
        transcript = " ".join(pieces)
        if logprobs:
            probability = sum(math.exp(value) for value in logprobs) / len(logprobs)
            confidence = clamp_confidence(probability * 100)
        else:
            confidence = estimate_confidence(transcript)
        return RecognitionResult(transcript, confidence)

    def close(self) -> None:
        self._model = None

    def describe(self) -> dict:
        return {
            "kind": self.kind,
            "engine": self.engine,
            "model_path": str(self.model_path) if self.model_path else None,
        }


def _collect_vosk(payload: str, texts: List[str], confidences: List[float]) -> None:
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise MalformedResult(f"Vosk returned unparseable output: {payload!r}") from exc
    if not isinstance(data, dict):
        raise MalformedResult(f"Vosk returned {type(data).__name__}, expected object")
    text = data.get("text", "")
    if not isinstance(text, str):
        raise MalformedResult("Vosk result text is not a string")
    if text.strip():
        texts.append(text.strip())
    for word in data.get("result") or []:
        if isinstance(word, dict) and isinstance(word.get("conf"), (int, float)):
            confidences.append(float(word["conf"]))


def _summarize_whisper(segments: Iterable) -> tuple[List[str], List[float]]:
    pieces: List[str] = []
    logprobs: List[float] = []
    for segment in segments:
        text = getattr(segment, "text", None)
        if not isinstance(text, str):
            raise MalformedResult("Whisper segment has no text")
        if text.strip():
            pieces.append(text.strip())
        avg_logprob = getattr(segment, "avg_logprob", None)
        if isinstance(avg_logprob, (int, float)):
            logprobs.append(float(avg_logprob))
    return pieces, logprobs


def _resample(audio: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    if audio.size == 0 or source_rate == target_rate:
        return audio
    target_size = max(1, int(round(audio.size * target_rate / float(source_rate))))
    positions = np.linspace(0, audio.size - 1, target_size)
    return np.interp(positions, np.arange(audio.size), audio).astype(np.float32)
