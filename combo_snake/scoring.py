"""
scoring.py — Points, ordered combos and micro-combos.

Two independent bonus mechanisms, whose points simply add up:

  - Ordered combo (ComboTracker): eat foods 1 → 2 → 3 → 4 → 5 without an
    out-of-order food in between. Completing the run awards a combo bonus
    on top of the five food values.
  - Micro-combo (ScoreLedger): every food eaten within the combo window of
    the previous food extends a streak, worth a small bonus per extension.

Both keep bounded histories (last SCORE_HISTORY_SIZE entries) and notify
subscribers synchronously.
"""

import logging
from collections import Counter, deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, NamedTuple, Optional

from .config import (
    COMBO_BONUS, COMBO_WINDOW_MS, FOOD_SLOTS,
    MICRO_COMBO_BONUS, MICRO_COMBO_CAP, SCORE_HISTORY_SIZE,
)
from .model import Position

logger = logging.getLogger(__name__)

COMBO_SEQUENCE = tuple(range(1, FOOD_SLOTS + 1))


def _notify(listeners: list, *args) -> None:
    for callback in list(listeners):
        try:
            callback(*args)
        except Exception:
            logger.exception("Listener %r failed", callback)


def _unsubscriber(listeners: list, callback) -> Callable[[], None]:
    def unsubscribe() -> None:
        if callback in listeners:
            listeners.remove(callback)
    return unsubscribe


# ──────────────────────────── Combo ──────────────────────────────
@dataclass(frozen=True)
class ComboState:
    current_sequence: tuple = ()
    expected_next: int = 1
    combo_progress: int = 0
    total_combos: int = 0
    is_combo_active: bool = False


class ComboEventType(str, Enum):
    STARTED   = "started"
    PROGRESS  = "progress"
    COMPLETED = "completed"
    BROKEN    = "broken"


@dataclass(frozen=True)
class ComboEvent:
    type: ComboEventType
    sequence: tuple
    progress: int
    total_points: int
    timestamp: float


class ComboResult(NamedTuple):
    event: ComboEvent
    state: ComboState
    points_awarded: int
    message: str = ""


class ComboTracker:
    """State machine for the 1 → 5 sequence."""

    def __init__(self, bonus: int = COMBO_BONUS,
                 history_size: int = SCORE_HISTORY_SIZE):
        self.bonus = bonus
        self._state = ComboState()
        self._history: deque[ComboEvent] = deque(maxlen=history_size)
        self._listeners: list[Callable[[ComboEvent], None]] = []
        self._foods_processed = 0
        self._foods_in_sequence = 0

    def state(self) -> ComboState:
        return self._state

    def process(self, number: int, timestamp: float) -> ComboResult:
        """Feed one eaten food number through the combo rules."""
        if number not in COMBO_SEQUENCE:
            raise ValueError(f"Invalid food number: {number}. Must be 1-{FOOD_SLOTS}.")

        self._foods_processed += 1
        prev = self._state

        if number == prev.expected_next:
            self._foods_in_sequence += 1
            sequence = prev.current_sequence + (number,)
            if number == COMBO_SEQUENCE[-1] and prev.combo_progress == FOOD_SLOTS - 1:
                self._state = ComboState(total_combos=prev.total_combos + 1)
                event = self._record(ComboEventType.COMPLETED, sequence, FOOD_SLOTS,
                                     self.bonus, timestamp)
                message = f"Combo completed! +{self.bonus} bonus points"
                points = self.bonus
            else:
                self._state = replace(
                    prev,
                    current_sequence=sequence,
                    expected_next=number % FOOD_SLOTS + 1,
                    combo_progress=len(sequence),
                    is_combo_active=True,
                )
                kind = ComboEventType.STARTED if len(sequence) == 1 else ComboEventType.PROGRESS
                event = self._record(kind, sequence, len(sequence), 0, timestamp)
                message = f"Combo progress: {len(sequence)}/{FOOD_SLOTS}"
                points = 0
        else:
            if number == COMBO_SEQUENCE[0]:
                self._foods_in_sequence += 1
                self._state = replace(prev, current_sequence=(1,), expected_next=2,
                                      combo_progress=1, is_combo_active=True)
            else:
                self._state = ComboState(total_combos=prev.total_combos)
            event = self._record(ComboEventType.BROKEN, self._state.current_sequence,
                                 self._state.combo_progress, 0, timestamp)
            message = "Combo broken! Sequence reset." if prev.is_combo_active else ""
            points = 0

        _notify(self._listeners, event)
        return ComboResult(event, self._state, points, message)

    def reset(self) -> None:
        self._state = ComboState()
        self._history.clear()
        self._foods_processed = 0
        self._foods_in_sequence = 0

    def subscribe(self, callback: Callable[[ComboEvent], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return _unsubscriber(self._listeners, callback)

    def history(self) -> list[ComboEvent]:
        return list(self._history)

    def statistics(self) -> dict:
        completed = sum(1 for e in self._history if e.type is ComboEventType.COMPLETED)
        longest = max((len(e.sequence) for e in self._history), default=0)
        efficiency = (
            self._foods_in_sequence / self._foods_processed * 100
            if self._foods_processed else 0.0
        )
        return {
            "total_combos": self._state.total_combos,
            "total_bonus_points": completed * self.bonus,
            "current_progress": self._state.combo_progress,
            "longest_sequence": longest,
            "total_food_consumed": self._foods_processed,
            "combo_efficiency": efficiency,
        }

    def validate(self) -> list[str]:
        s = self._state
        errors = []
        if len(s.current_sequence) != s.combo_progress:
            errors.append("Sequence length does not match progress")
        if tuple(s.current_sequence) != COMBO_SEQUENCE[:len(s.current_sequence)]:
            errors.append(f"Sequence {s.current_sequence} is not a prefix of {COMBO_SEQUENCE}")
        expected = (max(s.current_sequence) % FOOD_SLOTS + 1) if s.current_sequence else 1
        if s.expected_next != expected:
            errors.append(f"Expected next number mismatch: got {s.expected_next}, expected {expected}")
        if s.is_combo_active != (0 < s.combo_progress < FOOD_SLOTS):
            errors.append("Combo active flag does not match progress")
        return errors

    def _record(self, kind, sequence, progress, points, timestamp) -> ComboEvent:
        event = ComboEvent(kind, tuple(sequence), progress, points, timestamp)
        self._history.append(event)
        return event


# ──────────────────────────── Ledger ─────────────────────────────
class ScoreType(str, Enum):
    FOOD  = "food"
    COMBO = "combo"
    BONUS = "bonus"


@dataclass(frozen=True)
class ScoreEvent:
    type: ScoreType
    points: int
    timestamp: float
    position: Optional[Position] = None


@dataclass
class ScoreStatistics:
    total_score: int = 0
    total_events: int = 0
    average_score: float = 0.0
    score_breakdown: dict = field(default_factory=lambda: {t.value: 0 for t in ScoreType})
    highest_single_score: int = 0
    longest_combo: int = 0


class ScoreLedger:
    """Running score, append-only event history and the micro-combo streak."""

    def __init__(
        self,
        combo_window_ms: float = COMBO_WINDOW_MS,
        micro_combo_bonus: int = MICRO_COMBO_BONUS,
        micro_combo_cap: int = MICRO_COMBO_CAP,
        history_size: int = SCORE_HISTORY_SIZE,
    ):
        self.combo_window_ms = combo_window_ms
        self.micro_combo_bonus = micro_combo_bonus
        self.micro_combo_cap = micro_combo_cap
        self.score: int = 0
        self.combo_count: int = 0
        self._last_food_time: Optional[float] = None
        self._history: deque[ScoreEvent] = deque(maxlen=history_size)
        # Running totals; the history above only keeps the newest events.
        self._totals: Counter = Counter({t.value: 0 for t in ScoreType})
        self._event_count: int = 0
        self._highest: int = 0
        self._listeners: list[Callable[[int, ScoreEvent], None]] = []

    # ── Commands ─────────────────────────────────────────────────
    def add(self, kind: ScoreType, points: int, timestamp: float,
            position: Optional[Position] = None) -> ScoreEvent:
        event = ScoreEvent(ScoreType(kind), points, timestamp, position)
        self.score += points
        self._history.append(event)
        self._totals[event.type.value] += points
        self._event_count += 1
        self._highest = max(self._highest, points)
        _notify(self._listeners, self.score, event)
        return event

    def record_food(self, points: int, timestamp: float,
                    position: Optional[Position] = None) -> list[ScoreEvent]:
        """
        Book a food event and, when it extends a micro-combo, the streak bonus.
        Returns the events added (one or two).
        """
        if self._last_food_time is not None and timestamp - self._last_food_time <= self.combo_window_ms:
            self.combo_count += 1
        else:
            self.combo_count = 1
        self._last_food_time = timestamp

        events = [self.add(ScoreType.FOOD, points, timestamp, position)]
        bonus = self.micro_combo_points(self.combo_count)
        if bonus:
            events.append(self.add(ScoreType.BONUS, bonus, timestamp, position))
        return events

    def micro_combo_points(self, streak: int) -> int:
        return self.micro_combo_bonus * min(max(streak - 1, 0), self.micro_combo_cap)

    def reset(self) -> None:
        self.score = 0
        self.combo_count = 0
        self._last_food_time = None
        self._history.clear()
        self._totals = Counter({t.value: 0 for t in ScoreType})
        self._event_count = 0
        self._highest = 0

    def subscribe(self, callback: Callable[[int, ScoreEvent], None]) -> Callable[[], None]:
        self._listeners.append(callback)
        return _unsubscriber(self._listeners, callback)

    # ── Queries ──────────────────────────────────────────────────
    def history(self) -> list[ScoreEvent]:
        return list(self._history)

    def recent(self, count: int = 5) -> list[ScoreEvent]:
        return list(self._history)[-count:] if count > 0 else []

    def score_by_type(self, kind: ScoreType) -> int:
        return self._totals[ScoreType(kind).value]

    def combo_live(self, now: float) -> bool:
        """True while another food right now would extend the micro-combo."""
        return self._last_food_time is not None and now - self._last_food_time <= self.combo_window_ms

    def check_milestone(self, milestones) -> Optional[int]:
        """The milestone crossed by the most recent event, if any."""
        if not self._history:
            return None
        previous = self.score - self._history[-1].points
        for milestone in sorted(milestones):
            if previous < milestone <= self.score:
                return milestone
        return None

    def statistics(self) -> ScoreStatistics:
        """Totals cover the whole game; longest_combo only the retained history."""
        return ScoreStatistics(
            total_score=self.score,
            total_events=self._event_count,
            average_score=self.score / self._event_count if self._event_count else 0.0,
            score_breakdown=dict(self._totals),
            highest_single_score=self._highest,
            longest_combo=self._longest_streak(self._history),
        )

    def _longest_streak(self, events) -> int:
        longest = streak = 0
        last = None
        for e in events:
            if e.type is not ScoreType.FOOD:
                continue
            streak = streak + 1 if last is not None and e.timestamp - last <= self.combo_window_ms else 1
            last = e.timestamp
            longest = max(longest, streak)
        return longest
