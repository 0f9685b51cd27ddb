from .base import RecognitionBackend, RecognitionResult, estimate_confidence
from .model_backend import ModelBackend
from .pattern_backend import PatternBackend, PatternRule
from .selector import BackendSelector
from .simulated_backend import SimulatedBackend
from .worker import RecognitionWorker

__all__ = [
    "BackendSelector",
    "ModelBackend",
    "PatternBackend",
    "PatternRule",
    "RecognitionBackend",
    "RecognitionResult",
    "RecognitionWorker",
    "SimulatedBackend",
    "estimate_confidence",
]
