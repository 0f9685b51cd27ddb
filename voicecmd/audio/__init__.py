from .segmenter import AudioSegmenter
from .types import AudioChunk, AudioSegment

__all__ = ["AudioChunk", "AudioSegment", "AudioSegmenter"]
