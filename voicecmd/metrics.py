"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

SEGMENT_COUNTER = Counter(
    "voice_segments_total",
    "Finalized audio segments by outcome",
    labelnames=("outcome",),
)

RECOGNITION_COUNTER = Counter(
    "voice_recognitions_total",
    "Recognition calls by backend and status",
    labelnames=("backend", "status"),
)

RECOGNITION_LATENCY = Histogram(
    "voice_recognition_latency_seconds",
    "Time spent inside RecognitionBackend.recognize",
    labelnames=("backend",),
)

INTENT_COUNTER = Counter(
    "voice_intents_total",
    "Interpreted transcripts by intent kind",
    labelnames=("kind",),
)
