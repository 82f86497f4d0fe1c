"""Accumulate-and-cut segmentation of live audio into analysis-sized chunks."""

from __future__ import annotations

import threading
import time
from typing import Callable, List

import numpy as np

from pitchcoach.models import AudioSegment

FrameCallback = Callable[[np.ndarray], None]


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ChunkSegmenter:
    """
    Two-slot arena fed by the audio thread and cut by the pipeline cycle.

    push() always appends to the active slot. cut() flips the active index
    under the lock, so every frame lands in exactly one segment: frames pushed
    before the flip belong to the segment being cut, frames after it to the
    next one.
    """

    def __init__(self, sample_rate: int, clock: Callable[[], float] = monotonic_ms) -> None:
        self.sample_rate = int(sample_rate)
        self._clock = clock
        self._lock = threading.Lock()
        self._slots: List[List[np.ndarray]] = [[], []]
        self._counts = [0, 0]
        self._started = [clock(), clock()]
        self._active = 0
        self.frames_pushed = 0

    def push(self, frames: np.ndarray) -> None:
        """Called from the capture callback thread."""
        if frames is None or len(frames) == 0:
            return
        with self._lock:
            slot = self._active
            self._slots[slot].append(frames)
            self._counts[slot] += len(frames)
            self.frames_pushed += 1

    def pending_samples(self) -> int:
        with self._lock:
            return self._counts[self._active]

    def cut(self) -> AudioSegment:
        """Swap slots and return everything the previous slot collected."""
        with self._lock:
            slot = self._active
            self._active = 1 - slot
            self._started[self._active] = self._clock()
            # The drained slot is no longer written to once the index flips.
            chunks = self._slots[slot]
            self._slots[slot] = []
            self._counts[slot] = 0
            started = self._started[slot]

        if chunks:
            samples = np.concatenate(chunks).astype(np.float32, copy=False)
        else:
            samples = np.zeros(0, dtype=np.float32)
        return AudioSegment(samples=samples, sample_rate=self.sample_rate, started_at=started)

    def reset(self) -> None:
        with self._lock:
            now = self._clock()
            self._slots = [[], []]
            self._counts = [0, 0]
            self._started = [now, now]
            self._active = 0
            self.frames_pushed = 0
