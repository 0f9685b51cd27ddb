"""Background workers that run recognition off the ingestion path."""

from __future__ import annotations

import logging
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..audio.types import AudioSegment
from ..errors import RecognitionFailure
from ..metrics import RECOGNITION_COUNTER, RECOGNITION_LATENCY
from .base import RecognitionBackend, RecognitionResult

LOGGER = logging.getLogger("voicecmd.recognition")

ResultHandler = Callable[[AudioSegment, RecognitionResult], None]


@dataclass(slots=True)
class _Job:
    segment: AudioSegment
    on_result: Optional[ResultHandler] = None
    future: Optional[Future] = None


_STOP = object()


class RecognitionWorker:
    """Drain a queue of finalized segments through the active backend.

    A backend that is not safe for concurrent calls gets exactly one thread,
    which makes that thread the backend's single owner. At most
    ``max_pending`` segments wait in the queue (0 means unbounded); when it is
    full the oldest waiting segment is dropped so recent speech still gets
    recognized.
    """

    def __init__(
        self,
        backend: RecognitionBackend,
        *,
        workers: int = 1,
        max_pending: int = 0,
        stop_timeout: float = 10.0,
    ) -> None:
        self.backend = backend
        self.workers = workers if backend.concurrent_safe else 1
        self.max_pending = max_pending
        self.stop_timeout = stop_timeout
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._put_lock = threading.Lock()
        self._stopped = False

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            with self._put_lock:
                self._stopped = False
            self._threads = [
                threading.Thread(target=self._run, name=f"recognition-{idx}", daemon=True)
                for idx in range(self.workers)
            ]
            for thread in self._threads:
                thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Finish queued segments, then join each thread for up to ``timeout`` seconds."""
        timeout = self.stop_timeout if timeout is None else timeout
        with self._lock:
            threads = list(self._threads)
            with self._put_lock:
                self._stopped = True
                for _ in threads:
                    self._queue.put(_STOP)
        for thread in threads:
            thread.join(timeout=timeout)
            if thread.is_alive():
                LOGGER.warning("Recognition thread %s still busy after %.1fs", thread.name, timeout)

    def submit(self, segment: AudioSegment, on_result: ResultHandler) -> None:
        self._enqueue(_Job(segment, on_result))

    def request(self, segment: AudioSegment) -> "Future[Optional[RecognitionResult]]":
        """Queue a segment and hand back a future for its result (None on failure)."""
        future: "Future[Optional[RecognitionResult]]" = Future()
        self._enqueue(_Job(segment, future=future))
        return future

    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self) -> None:
        """Block until every queued segment has been processed."""
        self._queue.join()

    def _enqueue(self, job: _Job) -> None:
        with self._put_lock:
            if self._stopped:
                self._drop(job, "worker stopped")
                return
            while self.max_pending and self._queue.qsize() >= self.max_pending:
                try:
                    oldest = self._queue.get_nowait()
                except queue.Empty:
                    break
                self._queue.task_done()
                self._drop(oldest, "queue full")  # type: ignore[arg-type]
            self._queue.put(job)

    def _drop(self, job: _Job, reason: str) -> None:
        RECOGNITION_COUNTER.labels(backend=self.backend.kind, status="dropped").inc()
        LOGGER.warning("Dropping segment from speaker %s: %s", job.segment.speaker_id, reason)
        if job.future is not None:
            job.future.set_result(None)

    def _run(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                self._process(job)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _process(self, job: _Job) -> None:
        result = self.recognize(job.segment)
        if job.future is not None:
            job.future.set_result(result)
        if result is None or job.on_result is None:
            return
        try:
            job.on_result(job.segment, result)
        except Exception:
            LOGGER.exception("Result handler failed for speaker %s", job.segment.speaker_id)

    def recognize(self, segment: AudioSegment) -> Optional[RecognitionResult]:
        """Run one recognition, isolating failures to this segment."""
        kind = self.backend.kind
        start = time.perf_counter()
        try:
            result = self.backend.recognize(segment)
        except RecognitionFailure as exc:
            RECOGNITION_COUNTER.labels(backend=kind, status="failed").inc()
            LOGGER.warning("Recognition failed for speaker %s: %s", segment.speaker_id, exc)
            return None
        except Exception:
            # Backends should raise RecognitionFailure; anything else is still per-segment.
            RECOGNITION_COUNTER.labels(backend=kind, status="failed").inc()
            LOGGER.exception("Unexpected recognition error for speaker %s", segment.speaker_id)
            return None
        finally:
            RECOGNITION_LATENCY.labels(backend=kind).observe(time.perf_counter() - start)
        if not result.transcript:
            RECOGNITION_COUNTER.labels(backend=kind, status="empty").inc()
            LOGGER.debug("Empty transcript for speaker %s", segment.speaker_id)
            return None
        RECOGNITION_COUNTER.labels(backend=kind, status="ok").inc()
        return result
