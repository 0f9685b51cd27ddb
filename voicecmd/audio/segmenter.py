"""Per-speaker utterance segmentation driven by a silence timeout."""

from __future__ import annotations

import logging
import threading
import time
from functools import partial
from typing import Callable, Dict, Optional, Protocol

from ..metrics import SEGMENT_COUNTER
from .types import AudioChunk, AudioSegment

LOGGER = logging.getLogger("voicecmd.segmenter")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def start_thread_timer(interval: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    timer.start()
    return timer


class _SpeakerBuffer:
    __slots__ = ("lock", "data", "chunk_count", "started_at", "last_chunk_at", "timer", "generation")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.data = bytearray()
        self.chunk_count = 0
        self.started_at: float | None = None
        self.last_chunk_at: float | None = None
        self.timer: TimerHandle | None = None
        self.generation = 0


class AudioSegmenter:
    """Accumulate PCM per speaker and cut utterances on silence.

    Every speaker owns an isolated accumulator, lock and debounce timer, so
    traffic from one speaker never finalizes or delays another speaker's
    utterance. ``on_segment`` is invoked outside the accumulator lock, from
    whichever thread finalized the segment (transport thread or timer thread).
    """

    def __init__(
        self,
        sample_rate: int,
        on_segment: Callable[[AudioSegment], None],
        *,
        channels: int = 1,
        silence_timeout: float = 2.0,
        min_segment_bytes: int = 3200,
        max_segment_seconds: float = 15.0,
        timer_factory: TimerFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.on_segment = on_segment
        self.silence_timeout = silence_timeout
        self.min_segment_bytes = min_segment_bytes
        self.max_segment_bytes = max(1, int(max_segment_seconds * sample_rate * channels * 2))
        self._timer_factory = timer_factory or start_thread_timer
        self._clock = clock
        self._buffers: Dict[str, _SpeakerBuffer] = {}
        self._registry_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def speakers(self) -> list[str]:
        return list(self._buffers)

    def pending_bytes(self, speaker_id: str) -> int:
        buffer = self._buffers.get(speaker_id)
        if buffer is None:
            return 0
        with buffer.lock:
            return len(buffer.data)

    def on_speaking_start(self, speaker_id: str) -> None:
        if self._closed:
            return
        buffer = self._buffer_for(speaker_id)
        with buffer.lock:
            # A previous utterance still buffered is cut here intact.
            segment = self._take(speaker_id, buffer) if buffer.data else None
            self._arm(speaker_id, buffer)
        self._emit(segment)

    def on_chunk(self, speaker_id: str, chunk: AudioChunk | bytes) -> None:
        if self._closed:
            return
        if isinstance(chunk, AudioChunk):
            data, received_at = chunk.data, chunk.received_at
        else:
            data, received_at = bytes(chunk), self._clock()
        if not data:
            return
        buffer = self._buffer_for(speaker_id)
        segment = None
        with buffer.lock:
            if not buffer.data:
                buffer.started_at = received_at
            buffer.data.extend(data)
            buffer.chunk_count += 1
            buffer.last_chunk_at = received_at
            if len(buffer.data) >= self.max_segment_bytes:
                segment = self._take(speaker_id, buffer)
            else:
                self._arm(speaker_id, buffer)
        self._emit(segment)

    def on_speaking_end(self, speaker_id: str) -> None:
        if self._closed:
            return
        buffer = self._buffers.get(speaker_id)
        if buffer is None:
            return
        with buffer.lock:
            segment = self._take(speaker_id, buffer)
        self._emit(segment)

    def close(self) -> None:
        """Cancel all timers and drop anything not yet finalized."""
        self._closed = True
        with self._registry_lock:
            buffers = list(self._buffers.items())
            self._buffers.clear()
        for speaker_id, buffer in buffers:
            with buffer.lock:
                self._cancel_timer(buffer)
                buffer.generation += 1
                if buffer.data:
                    LOGGER.debug("Dropping %d buffered bytes for speaker %s", len(buffer.data), speaker_id)
                    SEGMENT_COUNTER.labels(outcome="cancelled").inc()
                self._reset(buffer)

    def _buffer_for(self, speaker_id: str) -> _SpeakerBuffer:
        buffer = self._buffers.get(speaker_id)
        if buffer is not None:
            return buffer
        with self._registry_lock:
            return self._buffers.setdefault(speaker_id, _SpeakerBuffer())

    def _arm(self, speaker_id: str, buffer: _SpeakerBuffer) -> None:
        self._cancel_timer(buffer)
        buffer.generation += 1
        callback = partial(self._on_silence, speaker_id, buffer, buffer.generation)
        buffer.timer = self._timer_factory(self.silence_timeout, callback)

    def _on_silence(self, speaker_id: str, buffer: _SpeakerBuffer, generation: int) -> None:
        with buffer.lock:
            if self._closed or buffer.generation != generation:
                return
            buffer.timer = None
            segment = self._take(speaker_id, buffer)
        self._emit(segment)

    def _take(self, speaker_id: str, buffer: _SpeakerBuffer) -> Optional[AudioSegment]:
        # Caller holds buffer.lock.
        self._cancel_timer(buffer)
        buffer.generation += 1
        if not buffer.data:
            return None
        data = bytes(buffer.data)
        chunk_count = buffer.chunk_count
        started_at = buffer.started_at or 0.0
        ended_at = buffer.last_chunk_at or started_at
        self._reset(buffer)
        if len(data) < self.min_segment_bytes:
            LOGGER.debug("Discarding near-silent segment (%d bytes) from speaker %s", len(data), speaker_id)
            SEGMENT_COUNTER.labels(outcome="discarded").inc()
            return None
        return AudioSegment.from_pcm(
            speaker_id,
            data,
            self.sample_rate,
            channels=self.channels,
            chunk_count=chunk_count,
            started_at=started_at,
            ended_at=ended_at,
        )

    def _emit(self, segment: Optional[AudioSegment]) -> None:
        if segment is None:
            return
        SEGMENT_COUNTER.labels(outcome="emitted").inc()
        LOGGER.debug(
            "Segment from speaker %s: %d bytes, %.2fs, mean amplitude %.1f",
            segment.speaker_id,
            segment.byte_length,
            segment.duration,
            segment.mean_amplitude,
        )
        try:
            self.on_segment(segment)
        except Exception:
            LOGGER.exception("Segment handler failed for speaker %s", segment.speaker_id)

    @staticmethod
    def _cancel_timer(buffer: _SpeakerBuffer) -> None:
        if buffer.timer is not None:
            buffer.timer.cancel()
            buffer.timer = None

    @staticmethod
    def _reset(buffer: _SpeakerBuffer) -> None:
        buffer.data = bytearray()
        buffer.chunk_count = 0
        buffer.started_at = None
        buffer.last_chunk_at = None
