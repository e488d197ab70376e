"""
speed.py — Tick interval progression.

Every completed ordered combo makes the snake one step faster, down to a
floor. A broken combo drops straight back to the base interval.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .config import BASE_TICK_MS, FASTEST_TICK_MS, TICK_STEP_MS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeedChange:
    previous_ms: int
    new_ms: int
    level: int
    reason: str          # "combo_completed" | "combo_broken" | "reset"


class SpeedManager:

    def __init__(self, base_ms: int = BASE_TICK_MS, step_ms: int = TICK_STEP_MS,
                 fastest_ms: int = FASTEST_TICK_MS):
        self.base_ms = base_ms
        self.step_ms = step_ms
        self.fastest_ms = fastest_ms
        self.level: int = 0
        self.max_level: int = 0
        self.total_increases: int = 0
        self.total_resets: int = 0
        self._listeners: list[Callable[[SpeedChange], None]] = []

    @property
    def interval_ms(self) -> int:
        return self.interval_for(self.level)

    def interval_for(self, level: int) -> int:
        return max(self.base_ms - level * self.step_ms, self.fastest_ms)

    def on_combo_completed(self) -> SpeedChange:
        previous = self.interval_ms
        self.level += 1
        self.max_level = max(self.max_level, self.level)
        self.total_increases += 1
        return self._changed(previous, "combo_completed")

    def on_combo_broken(self) -> SpeedChange | None:
        if self.level == 0:
            return None
        previous = self.interval_ms
        self.level = 0
        self.total_resets += 1
        return self._changed(previous, "combo_broken")

    def reset(self) -> None:
        self.level = 0
        self.max_level = 0
        self.total_increases = 0
        self.total_resets = 0

    def subscribe(self, callback: Callable[[SpeedChange], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return lambda: self._listeners.remove(callback) if callback in self._listeners else None

    def _changed(self, previous: int, reason: str) -> SpeedChange:
        change = SpeedChange(previous, self.interval_ms, self.level, reason)
        logger.debug("Tick interval %dms -> %dms (%s)", previous, change.new_ms, reason)
        for callback in list(self._listeners):
            callback(change)
        return change
