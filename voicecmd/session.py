"""Per-channel listening sessions and the pipeline facade."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Union

from .audio.segmenter import AudioSegmenter, TimerFactory
from .audio.types import AudioChunk, AudioSegment
from .commands.intents import Ignored, Intent
from .commands.interpreter import CommandInterpreter
from .errors import BackendUnavailable
from .metrics import INTENT_COUNTER
from .recognition.base import RecognitionBackend, RecognitionResult
from .recognition.selector import BackendSelector
from .recognition.worker import RecognitionWorker
from .settings import VoiceSettings, get_settings

LOGGER = logging.getLogger("voicecmd.session")

ResultCallback = Callable[[Intent, str, int], None]


class SpeakingReceiver(Protocol):
    """Transport side that delivers speaking events to a subscribed listener."""

    def subscribe(self, listener: "ListeningSession") -> None: ...

    def unsubscribe(self, listener: "ListeningSession") -> None: ...


class SessionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class ListeningSession:
    """Ties one channel's speaking events to segmentation, recognition and intents."""

    def __init__(
        self,
        channel_id: str,
        on_result: ResultCallback,
        *,
        settings: VoiceSettings,
        worker: RecognitionWorker,
        interpreter: CommandInterpreter,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.channel_id = channel_id
        self.on_result = on_result
        self.settings = settings
        self.worker = worker
        self.interpreter = interpreter
        self.state = SessionState.INACTIVE
        self._timer_factory = timer_factory
        self._segmenter: Optional[AudioSegmenter] = None
        self._receiver: Optional[SpeakingReceiver] = None

    @property
    def active(self) -> bool:
        return self.state is SessionState.ACTIVE

    @property
    def segmenter(self) -> Optional[AudioSegmenter]:
        return self._segmenter

    def start(self, receiver: Optional[SpeakingReceiver] = None) -> bool:
        if self.active:
            LOGGER.info("Listening already active for channel %s", self.channel_id)
            return False
        self._segmenter = AudioSegmenter(
            self.settings.sample_rate,
            self._on_segment,
            channels=self.settings.channels,
            silence_timeout=self.settings.silence_timeout_sec,
            min_segment_bytes=self.settings.min_segment_bytes,
            max_segment_seconds=self.settings.max_segment_seconds,
            timer_factory=self._timer_factory,
        )
        self.state = SessionState.ACTIVE
        if receiver is not None:
            receiver.subscribe(self)
            self._receiver = receiver
        LOGGER.info("Listening started for channel %s", self.channel_id)
        return True

    def stop(self) -> bool:
        if not self.active:
            LOGGER.info("Listening not active for channel %s", self.channel_id)
            return False
        self.state = SessionState.INACTIVE
        if self._receiver is not None:
            self._receiver.unsubscribe(self)
            self._receiver = None
        if self._segmenter is not None:
            self._segmenter.close()
        LOGGER.info("Listening stopped for channel %s", self.channel_id)
        return True

    def on_speaking_start(self, speaker_id: str) -> None:
        segmenter = self._segmenter
        if self.active and segmenter is not None:
            segmenter.on_speaking_start(speaker_id)

    def on_chunk(self, speaker_id: str, chunk: Union[AudioChunk, bytes]) -> None:
        segmenter = self._segmenter
        if self.active and segmenter is not None:
            segmenter.on_chunk(speaker_id, chunk)

    def on_speaking_end(self, speaker_id: str) -> None:
        segmenter = self._segmenter
        if self.active and segmenter is not None:
            segmenter.on_speaking_end(speaker_id)

    def _on_segment(self, segment: AudioSegment) -> None:
        if not self.active:
            return
        self.worker.submit(segment, self._on_recognized)

    def _on_recognized(self, segment: AudioSegment, result: RecognitionResult) -> None:
        if not self.active:
            LOGGER.debug("Dropping result for stopped channel %s", self.channel_id)
            return
        outcome = self.interpreter.interpret(result.transcript, result.confidence)
        INTENT_COUNTER.labels(kind=outcome.kind).inc()
        LOGGER.info(
            "Channel %s speaker %s: %r (confidence %d) -> %s",
            self.channel_id,
            segment.speaker_id,
            result.transcript,
            result.confidence,
            outcome.kind,
        )
        if isinstance(outcome, Ignored):
            return
        self.on_result(outcome, result.transcript, result.confidence)


class SessionRegistry:
    """Channel id -> ListeningSession, owned by one pipeline."""

    def __init__(self) -> None:
        self._sessions: Dict[str, ListeningSession] = {}
        self._lock = threading.Lock()

    def get(self, channel_id: str) -> Optional[ListeningSession]:
        with self._lock:
            return self._sessions.get(channel_id)

    def add(self, session: ListeningSession) -> bool:
        with self._lock:
            if session.channel_id in self._sessions:
                return False
            self._sessions[session.channel_id] = session
            return True

    def remove(self, channel_id: str) -> Optional[ListeningSession]:
        with self._lock:
            return self._sessions.pop(channel_id, None)

    def channels(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, channel_id: object) -> bool:
        with self._lock:
            return channel_id in self._sessions


@dataclass(slots=True)
class PipelineStatus:
    active: bool
    backend_kind: Optional[str]
    session_count: int
    model_path: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class VoicePipeline:
    """Public entry point: start/stop listening per channel and report status."""

    def __init__(
        self,
        settings: Optional[VoiceSettings] = None,
        *,
        selector: Optional[BackendSelector] = None,
        interpreter: Optional[CommandInterpreter] = None,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.selector = selector or BackendSelector.from_settings(self.settings)
        self.interpreter = interpreter or CommandInterpreter(self.settings.confidence_threshold)
        self.sessions = SessionRegistry()
        self._timer_factory = timer_factory
        self._worker: Optional[RecognitionWorker] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def backend(self) -> Optional[RecognitionBackend]:
        return self.selector.active

    @property
    def worker(self) -> Optional[RecognitionWorker]:
        return self._worker

    def initialize(self) -> RecognitionBackend:
        """Select the backend and start recognition workers (idempotent).

        Raises ``BackendUnavailable`` once the pipeline has been shut down: the
        selected backend is closed by then and selection is never retried.
        """
        with self._lock:
            if self._closed:
                raise BackendUnavailable("voice pipeline has been shut down")
            backend = self.selector.select()
            if self._worker is None:
                self._worker = RecognitionWorker(
                    backend,
                    workers=self.settings.recognition_workers,
                    max_pending=self.settings.max_pending_segments,
                    stop_timeout=self.settings.shutdown_timeout_sec,
                )
                self._worker.start()
            return backend

    def start_listening(
        self,
        channel_id: str,
        on_result: ResultCallback,
        receiver: Optional[SpeakingReceiver] = None,
    ) -> bool:
        if self._worker is None:
            self.initialize()
        with self._lock:
            if self._closed or self._worker is None:
                raise BackendUnavailable("voice pipeline has been shut down")
            if channel_id in self.sessions:
                LOGGER.info("Listening already active for channel %s", channel_id)
                return False
            session = ListeningSession(
                channel_id,
                on_result,
                settings=self.settings,
                worker=self._worker,
                interpreter=self.interpreter,
                timer_factory=self._timer_factory,
            )
            session.start(receiver)
            self.sessions.add(session)
        return True

    def stop_listening(self, channel_id: str) -> bool:
        session = self.sessions.remove(channel_id)
        if session is None:
            LOGGER.info("Listening not active for channel %s", channel_id)
            return False
        return session.stop()

    def disconnect(self, channel_id: str) -> bool:
        """Called by the transport when the bot leaves the channel."""
        return self.stop_listening(channel_id)

    def session(self, channel_id: str) -> Optional[ListeningSession]:
        return self.sessions.get(channel_id)

    def request(self, segment: AudioSegment) -> "Future[Optional[RecognitionResult]]":
        """Queue one segment on the recognition worker; the future yields None on failure."""
        if self._worker is None:
            raise BackendUnavailable("voice recognition is not initialized")
        return self._worker.request(segment)

    def recognize(self, segment: AudioSegment, timeout: float | None = 30.0) -> Optional[RecognitionResult]:
        return self.request(segment).result(timeout=timeout)

    def interpret(self, transcript: str, confidence: int) -> Union[Intent, Ignored]:
        return self.interpreter.interpret(transcript, confidence)

    def get_status(self) -> PipelineStatus:
        backend = self.backend
        model_path = getattr(backend, "model_path", None)
        return PipelineStatus(
            active=backend is not None and self._worker is not None,
            backend_kind=backend.kind if backend is not None else None,
            session_count=len(self.sessions),
            model_path=str(model_path) if model_path else None,
        )

    def shutdown(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        for channel_id in self.sessions.channels():
            self.stop_listening(channel_id)
        if self._worker is not None:
            self._worker.stop()
            self._worker = None
        backend = self.backend
        if backend is not None:
            backend.close()
