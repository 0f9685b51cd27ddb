"""Error taxonomy for the voice pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable


class VoicePipelineError(Exception):
    pass


class BackendUnavailable(VoicePipelineError):
    """No recognition backend could be initialized; voice listening is off."""


class BackendInitError(VoicePipelineError):
    """A single backend failed to initialize."""


class AssetMissing(BackendInitError):
    def __init__(self, searched: Iterable[Path]) -> None:
        self.searched = [Path(path) for path in searched]
        joined = ", ".join(str(path) for path in self.searched) or "(none configured)"
        super().__init__(f"Recognition model not found (searched: {joined})")


class RecognitionFailure(VoicePipelineError):
    """Recognition of one segment failed; the segment is dropped."""


class MalformedResult(RecognitionFailure):
    pass
