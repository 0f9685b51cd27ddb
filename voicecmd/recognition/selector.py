"""One-shot backend selection at startup."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..errors import AssetMissing, BackendUnavailable
from ..settings import VoiceSettings
from .base import RecognitionBackend
from .model_backend import ModelBackend, install_instructions
from .pattern_backend import PatternBackend
from .simulated_backend import SimulatedBackend

LOGGER = logging.getLogger("voicecmd.selector")


class BackendSelector:
    """Try backends in priority order and keep the first that initializes.

    Selection happens once; ``select`` returns the cached winner on later calls
    and never re-probes a backend that already failed.
    """

    def __init__(self, candidates: Sequence[RecognitionBackend]) -> None:
        self.candidates = list(candidates)
        self.failures: List[tuple[str, str]] = []
        self._active: Optional[RecognitionBackend] = None
        self._attempted = False

    @classmethod
    def from_settings(cls, settings: VoiceSettings) -> "BackendSelector":
        ordered: List[RecognitionBackend] = [
            ModelBackend(
                settings.model_root,
                settings.model_names,
                engine=settings.model_engine,
                frame_bytes=settings.model_frame_bytes,
                language=settings.language,
                whisper_device=settings.whisper_device,
                whisper_compute_type=settings.whisper_compute_type,
            ),
            PatternBackend(),
            SimulatedBackend(delay=settings.simulated_delay_sec),
        ]
        disabled = set(settings.disabled_backends)
        return cls([backend for backend in ordered if backend.kind not in disabled])

    @property
    def active(self) -> Optional[RecognitionBackend]:
        return self._active

    def select(self) -> RecognitionBackend:
        if self._active is not None:
            return self._active
        if self._attempted:
            raise BackendUnavailable(self._summary())
        self._attempted = True
        for backend in self.candidates:
            try:
                backend.initialize()
            except AssetMissing as exc:
                LOGGER.warning("%s backend unavailable: %s", backend.kind, exc)
                if isinstance(backend, ModelBackend):
                    LOGGER.warning(install_instructions(backend.model_dir, backend.model_names))
                self.failures.append((backend.kind, str(exc)))
            except Exception as exc:
                LOGGER.warning("%s backend failed to initialize: %s", backend.kind, exc)
                self.failures.append((backend.kind, str(exc)))
            else:
                LOGGER.info("Recognition backend selected: %s", backend.kind)
                self._active = backend
                return backend
        LOGGER.error("No recognition backend could be initialized; voice listening disabled")
        raise BackendUnavailable(self._summary())

    def _summary(self) -> str:
        if not self.failures:
            return "no recognition backends configured"
        return "; ".join(f"{kind}: {reason}" for kind, reason in self.failures)
