"""Local speaking-pace estimate from word-arrival timestamps.

Pace refreshes far more often than the analysis round trip, so it is computed
here from the word counts of accepted transcript increments instead of waiting
on the service's own judgement of pace.

All times are milliseconds on the caller's clock.
"""

from collections import deque
from typing import Deque, Optional

WINDOW_MS = 1800.0
OPTIMAL_WPS = 2.5  # ~150 WPM
SILENCE_THRESHOLD_MS = 800.0
SILENCE_DECAY = 0.92
BIAS = 1.1


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _blend_rate(delta: float) -> float:
    # Large jumps are tracked quickly, small jitter is damped.
    if delta > 0.3:
        return 0.45
    if delta > 0.15:
        return 0.30
    return 0.15


class PaceTracker:
    """Smoothed pace score in [-1, 1]; 0 is ideal, negative slow, positive fast."""

    def __init__(self):
        self._word_times: Deque[float] = deque()
        self._smoothed = 0.0
        self._last_word_time: Optional[float] = None

    def add_words(self, count: int, timestamp: float) -> None:
        for _ in range(max(0, int(count))):
            self._word_times.append(timestamp)
        if count > 0:
            self._last_word_time = timestamp

    def update(self, now: float) -> float:
        cutoff = now - WINDOW_MS
        while self._word_times and self._word_times[0] < cutoff:
            self._word_times.popleft()

        if self._last_word_time is not None and (now - self._last_word_time) > SILENCE_THRESHOLD_MS:
            # Decay instead of snapping to zero during pauses
            self._smoothed *= SILENCE_DECAY
        else:
            wps = len(self._word_times) / (WINDOW_MS / 1000.0)
            score = _clamp((wps - OPTIMAL_WPS) / OPTIMAL_WPS)
            alpha = _blend_rate(abs(score - self._smoothed))
            self._smoothed = alpha * score + (1 - alpha) * self._smoothed

        return _clamp(self._smoothed * BIAS)

    def reset(self) -> None:
        self._word_times.clear()
        self._smoothed = 0.0
        self._last_word_time = None
