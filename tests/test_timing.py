"""
Tests for timing.py - the fixed-step accumulator.
"""

import pytest

from combo_snake.timing import FixedStepClock


class TestFixedStepClock:
    """Tests for the FixedStepClock class."""

    def test_accumulates_partial_frames(self):
        ticker = FixedStepClock(100)
        assert ticker.advance(60) == 0
        assert ticker.advance(60) == 1
        assert ticker.accumulator == pytest.approx(20)

    def test_several_ticks_in_one_frame(self):
        ticker = FixedStepClock(50, max_frame_ms=250, max_steps=5)
        assert ticker.advance(160) == 3
        assert ticker.total_ticks == 3

    def test_long_stall_is_clamped(self):
        ticker = FixedStepClock(150, max_frame_ms=250, max_steps=3)
        assert ticker.advance(10_000) == 1
        assert ticker.accumulator == pytest.approx(100)

    def test_excess_beyond_step_cap_is_dropped(self):
        ticker = FixedStepClock(50, max_frame_ms=250, max_steps=3)
        assert ticker.advance(240) == 3
        assert ticker.accumulator < 50
        assert ticker.advance(0) == 0

    def test_negative_elapsed_ignored(self):
        ticker = FixedStepClock(100)
        assert ticker.advance(-500) == 0
        assert ticker.accumulator == 0

    def test_alpha(self):
        ticker = FixedStepClock(100)
        ticker.advance(25)
        assert ticker.alpha == pytest.approx(0.25)

    def test_set_interval(self):
        ticker = FixedStepClock(150)
        ticker.advance(100)
        ticker.set_interval(60)
        assert ticker.advance(0) == 1

    @pytest.mark.parametrize("bad", [0, -10])
    def test_rejects_non_positive_interval(self, bad):
        with pytest.raises(ValueError):
            FixedStepClock(bad)
        with pytest.raises(ValueError):
            FixedStepClock(100).set_interval(bad)

    def test_reset(self):
        ticker = FixedStepClock(100)
        ticker.advance(90)
        ticker.reset()
        assert ticker.advance(20) == 0
