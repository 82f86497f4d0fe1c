"""Tests for ChunkSegmenter slot handoff and AudioSegment encoding."""

import io
import threading
import wave

import numpy as np

from pitchcoach.models import AudioSegment
from pitchcoach.segmenter import ChunkSegmenter


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _frames(value, n=100):
    return np.full(n, value, dtype=np.float32)


def test_cut_returns_everything_pushed_since_last_cut():
    seg = ChunkSegmenter(24000, clock=FakeClock())
    seg.push(_frames(0.1))
    seg.push(_frames(0.2, 50))

    segment = seg.cut()

    assert segment.sample_count == 150
    assert segment.sample_rate == 24000
    assert np.allclose(segment.samples[:100], 0.1)
    assert np.allclose(segment.samples[100:], 0.2)


def test_frames_after_cut_go_to_next_segment():
    seg = ChunkSegmenter(24000, clock=FakeClock())
    seg.push(_frames(0.1))
    first = seg.cut()
    seg.push(_frames(0.3, 40))
    second = seg.cut()

    assert first.sample_count == 100
    assert second.sample_count == 40
    assert np.allclose(second.samples, 0.3)


def test_empty_cut_yields_empty_segment():
    seg = ChunkSegmenter(24000, clock=FakeClock())

    segment = seg.cut()

    assert segment.sample_count == 0
    assert segment.duration_ms == 0.0


def test_segment_start_time_is_slot_start():
    clock = FakeClock(1000.0)
    seg = ChunkSegmenter(24000, clock=clock)
    clock.now = 3000.0
    seg.cut()
    clock.now = 5000.0
    seg.push(_frames(0.1))

    segment = seg.cut()

    assert segment.started_at == 3000.0


def test_pending_samples_and_reset():
    seg = ChunkSegmenter(24000, clock=FakeClock())
    seg.push(_frames(0.1, 10))
    assert seg.pending_samples() == 10

    seg.reset()

    assert seg.pending_samples() == 0
    assert seg.cut().sample_count == 0


def test_concurrent_push_never_loses_or_duplicates_frames():
    """Each pushed frame carries a unique id; every id must appear exactly once across segments."""
    seg = ChunkSegmenter(24000)
    total = 5000
    collected = []
    done = threading.Event()

    def producer():
        for i in range(total):
            seg.push(np.array([float(i)], dtype=np.float32))
        done.set()

    t = threading.Thread(target=producer)
    t.start()
    while not done.is_set():
        collected.append(seg.cut().samples)
    t.join()
    collected.append(seg.cut().samples)

    ids = np.concatenate(collected).astype(np.int64)
    assert len(ids) == total
    assert sorted(ids.tolist()) == list(range(total))


def test_audio_segment_pcm16_and_wav():
    samples = np.array([0.0, 1.0, -1.0, 2.0], dtype=np.float32)
    segment = AudioSegment(samples=samples, sample_rate=24000, started_at=0.0)

    pcm = np.frombuffer(segment.to_pcm16(), dtype="<i2")
    assert pcm.tolist() == [0, 32767, -32768, 32767]

    with wave.open(io.BytesIO(segment.to_wav()), "rb") as w:
        assert w.getnchannels() == 1
        assert w.getsampwidth() == 2
        assert w.getframerate() == 24000
        assert w.getnframes() == 4


def test_audio_segment_rms_and_duration():
    segment = AudioSegment(samples=np.full(2400, 0.5, dtype=np.float32), sample_rate=24000, started_at=0.0)

    assert abs(segment.rms - 0.5) < 1e-6
    assert segment.duration_ms == 100.0
