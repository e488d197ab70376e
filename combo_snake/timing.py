"""
timing.py — Fixed-step accumulator for the host loop.

The host feeds in wall-clock time; the clock answers how many simulation
ticks are due. Long stalls (window drag, debugger, sleep) are clamped so the
snake never jumps several cells in one burst. The leftover fraction is kept
for renderers that interpolate between ticks.
"""

import logging

from .config import BASE_TICK_MS, MAX_FRAME_MS, MAX_STEPS_PER_FRAME

logger = logging.getLogger(__name__)


class FixedStepClock:

    def __init__(self, interval_ms: float = BASE_TICK_MS,
                 max_frame_ms: float = MAX_FRAME_MS,
                 max_steps: int = MAX_STEPS_PER_FRAME):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.interval_ms = interval_ms
        self.max_frame_ms = max_frame_ms
        self.max_steps = max_steps
        self.accumulator: float = 0.0
        self.total_ticks: int = 0

    def advance(self, elapsed_ms: float) -> int:
        """Add elapsed time; return the number of ticks to run now."""
        if elapsed_ms > self.max_frame_ms:
            logger.debug("Clamped a %.0fms frame to %.0fms", elapsed_ms, self.max_frame_ms)
        self.accumulator += min(max(elapsed_ms, 0.0), self.max_frame_ms)
        steps = 0
        while self.accumulator >= self.interval_ms and steps < self.max_steps:
            self.accumulator -= self.interval_ms
            steps += 1
        # Anything still owed after the cap is dropped, not queued.
        if steps == self.max_steps and self.accumulator >= self.interval_ms:
            dropped = self.accumulator - self.accumulator % self.interval_ms
            logger.debug("Frame behind by %.0fms; dropping %d tick(s)",
                         dropped, int(dropped // self.interval_ms))
            self.accumulator %= self.interval_ms
        self.total_ticks += steps
        return steps

    @property
    def alpha(self) -> float:
        """Fraction of the next tick already elapsed, in [0, 1]."""
        return min(self.accumulator / self.interval_ms, 1.0)

    def set_interval(self, interval_ms: float) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.interval_ms = interval_ms

    def reset(self) -> None:
        self.accumulator = 0.0
