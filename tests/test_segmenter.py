import threading

import numpy as np

from voicecmd.audio.segmenter import AudioSegmenter
from voicecmd.audio.types import AudioChunk, AudioSegment, mean_amplitude


def _pcm(value: int, samples: int) -> bytes:
    return np.full(samples, value, dtype="<i2").tobytes()


def _segmenter(timers, emitted, **kwargs) -> AudioSegmenter:
    kwargs.setdefault("min_segment_bytes", 10)
    return AudioSegmenter(16_000, emitted.append, timer_factory=timers, **kwargs)


def test_silence_timeout_finalizes_one_segment_with_all_chunks(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted, silence_timeout=1.5)

    segmenter.on_speaking_start("alice")
    for _ in range(3):
        segmenter.on_chunk("alice", _pcm(16, 100))

    assert emitted == []
    assert len(timers.pending()) == 1
    assert timers.pending()[0].interval == 1.5

    timers.fire_all()
    assert len(emitted) == 1
    segment = emitted[0]
    assert segment.speaker_id == "alice"
    assert segment.byte_length == 600
    assert segment.chunk_count == 3
    assert segment.mean_amplitude == 16.0

    timers.fire_all()
    assert len(emitted) == 1
    assert segmenter.pending_bytes("alice") == 0


def test_speakers_are_isolated(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted)

    segmenter.on_chunk("alice", _pcm(100, 50))
    alice_timer = timers.pending()[0]
    segmenter.on_chunk("bob", _pcm(200, 80))
    bob_timer = timers.pending()[1]

    # More audio from alice re-arms only alice's timer.
    segmenter.on_chunk("alice", _pcm(100, 50))
    assert alice_timer.cancelled
    assert not bob_timer.cancelled

    timers.pending()[0].fire()  # bob's timer is now the oldest pending
    assert [seg.speaker_id for seg in emitted] == ["bob"]
    assert segmenter.pending_bytes("alice") == 200

    timers.fire_all()
    assert [seg.speaker_id for seg in emitted] == ["bob", "alice"]
    assert emitted[1].byte_length == 200


def test_speaking_end_forces_finalize_without_waiting(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted)

    segmenter.on_speaking_start("alice")
    segmenter.on_chunk("alice", AudioChunk(_pcm(300, 400), received_at=10.0))
    segmenter.on_chunk("alice", AudioChunk(_pcm(300, 400), received_at=10.5))
    segmenter.on_speaking_end("alice")

    assert len(emitted) == 1
    assert emitted[0].started_at == 10.0
    assert emitted[0].ended_at == 10.5
    assert timers.pending() == []


def test_near_silent_accumulator_is_discarded(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted, min_segment_bytes=1000)

    segmenter.on_speaking_start("alice")
    segmenter.on_chunk("alice", _pcm(5, 10))
    segmenter.on_speaking_end("alice")
    timers.fire_all()

    assert emitted == []


def test_speaking_start_with_buffered_audio_keeps_prior_utterance_intact(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted)

    segmenter.on_speaking_start("alice")
    segmenter.on_chunk("alice", _pcm(111, 100))
    segmenter.on_speaking_start("alice")
    segmenter.on_chunk("alice", _pcm(222, 60))
    timers.fire_all()

    assert len(emitted) == 2
    assert emitted[0].data == _pcm(111, 100)
    assert emitted[1].data == _pcm(222, 60)


def test_close_cancels_timers_and_drops_partial_audio(timers):
    emitted: list[AudioSegment] = []
    segmenter = _segmenter(timers, emitted)

    segmenter.on_chunk("alice", _pcm(50, 100))
    segmenter.on_chunk("bob", _pcm(50, 100))
    segmenter.close()

    assert all(timer.cancelled for timer in timers.timers)
    segmenter.on_chunk("alice", _pcm(50, 100))
    segmenter.on_speaking_end("alice")
    timers.fire_all()
    assert emitted == []
    assert segmenter.closed


def test_long_utterance_is_split_at_max_length(timers):
    emitted: list[AudioSegment] = []
    segmenter = AudioSegmenter(
        1000,
        emitted.append,
        min_segment_bytes=0,
        max_segment_seconds=0.5,
        timer_factory=timers,
    )

    segmenter.on_chunk("alice", _pcm(10, 400))
    assert emitted == []
    segmenter.on_chunk("alice", _pcm(10, 100))
    assert len(emitted) == 1
    assert emitted[0].byte_length == 1000
    assert emitted[0].duration == 0.5


def test_default_thread_timer_fires_after_silence():
    done = threading.Event()
    emitted: list[AudioSegment] = []

    def handler(segment):
        emitted.append(segment)
        done.set()

    segmenter = AudioSegmenter(16_000, handler, silence_timeout=0.05, min_segment_bytes=0)
    segmenter.on_chunk("alice", _pcm(1000, 160))

    assert done.wait(timeout=2.0)
    assert emitted[0].byte_length == 320
    segmenter.close()


def test_mean_amplitude_uses_absolute_samples():
    data = np.array([1000, -1000, 500, -500], dtype="<i2").tobytes()
    assert mean_amplitude(data) == 750.0
    assert mean_amplitude(b"") == 0.0
    assert mean_amplitude(b"\x01") == 0.0


def test_segment_duration_accounts_for_channels():
    segment = AudioSegment.from_pcm("a", b"\x00" * 64_000, 16_000, channels=2)
    assert segment.duration == 1.0
