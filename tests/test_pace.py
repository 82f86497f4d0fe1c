"""Tests for PaceTracker smoothing, silence decay and bounds."""

import random

import pytest

from pitchcoach.pace import PaceTracker


def test_burst_of_words_uses_fast_blend_and_bias():
    """30 words in the window clamp the raw score to +1; one update gives 0.45 * 1.1."""
    tracker = PaceTracker()
    tracker.add_words(30, 1000.0)

    assert tracker.update(1100.0) == pytest.approx(0.495)


def test_no_words_before_any_speech_drifts_slow():
    """With an empty window and no word yet, the raw score is -1 (no silence decay)."""
    tracker = PaceTracker()

    score = tracker.update(500.0)

    assert score == pytest.approx(-0.495)


def test_ideal_rate_settles_near_zero():
    tracker = PaceTracker()
    t = 0.0
    score = None
    # 2.5 words/sec: one word every 400ms
    for _ in range(100):
        t += 400.0
        tracker.add_words(1, t)
        score = tracker.update(t + 1.0)

    assert abs(score) < 0.15


def test_small_jump_uses_slow_blend():
    """A jump below 0.15 blends at 0.15."""
    tracker = PaceTracker()
    # 5 words in 1.8s -> 2.78 wps -> raw 0.111
    tracker.add_words(5, 1000.0)

    score = tracker.update(1000.0)

    raw = (5 / 1.8 - 2.5) / 2.5
    assert score == pytest.approx(0.15 * raw * 1.1)


def test_medium_jump_uses_medium_blend():
    tracker = PaceTracker()
    tracker.add_words(7, 1000.0)
    raw = (7 / 1.8 - 2.5) / 2.5  # ~0.556

    tracker.update(1000.0)  # jump from 0: fast blend
    smoothed = 0.45 * raw
    tracker.update(1001.0)  # delta ~0.306: still fast
    smoothed = 0.45 * raw + 0.55 * smoothed

    assert 0.15 < raw - smoothed <= 0.3
    third = tracker.update(1002.0)

    smoothed = 0.30 * raw + 0.70 * smoothed
    assert third == pytest.approx(smoothed * 1.1)


def test_old_words_leave_the_window():
    tracker = PaceTracker()
    tracker.add_words(10, 0.0)
    tracker.add_words(1, 1900.0)

    # At 2000ms the 10 words at t=0 are outside the 1800ms window
    tracker.update(2000.0)

    assert len(tracker._word_times) == 1


def test_silence_decays_magnitude_monotonically():
    tracker = PaceTracker()
    tracker.add_words(30, 1000.0)
    tracker.update(1000.0)
    previous = abs(tracker.update(1100.0))

    now = 1100.0
    for _ in range(50):
        now += 100.0
        if now - 1000.0 <= 800.0:
            previous = abs(tracker.update(now))
            continue
        current = abs(tracker.update(now))
        assert current <= previous
        previous = current

    assert previous < 0.1


def test_silence_decay_factor():
    tracker = PaceTracker()
    tracker.add_words(30, 0.0)
    before = tracker.update(0.0)

    after = tracker.update(900.0)

    assert after == pytest.approx(before * 0.92)


def test_add_zero_words_does_not_move_last_word_time():
    tracker = PaceTracker()
    tracker.add_words(30, 0.0)
    tracker.update(0.0)
    tracker.add_words(0, 5000.0)

    before = tracker._smoothed
    tracker.update(5000.0)

    # still silent: decayed rather than recomputed
    assert tracker._smoothed == pytest.approx(before * 0.92)


def test_reset_clears_state():
    tracker = PaceTracker()
    tracker.add_words(30, 0.0)
    tracker.update(0.0)

    tracker.reset()

    assert tracker._smoothed == 0.0
    assert len(tracker._word_times) == 0
    assert tracker._last_word_time is None


def test_score_always_bounded():
    rng = random.Random(1234)
    tracker = PaceTracker()
    now = 0.0
    for _ in range(2000):
        now += rng.uniform(0, 400)
        if rng.random() < 0.6:
            tracker.add_words(rng.randint(0, 40), now)
        score = tracker.update(now)
        assert -1.0 <= score <= 1.0
