"""
session.py — Session lifecycle.

MENU / LOADING / PLAYING / PAUSED / GAME_OVER, with an explicit table of
legal transitions. The machine also keeps the session clock: when the game
started, how long it has been paused, and the frozen statistics once it ends.

Listeners fire synchronously inside transition_to(): global transition
listeners first, then the listeners registered for the state entered.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from .model import Position

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    MENU      = "menu"
    LOADING   = "loading"
    PLAYING   = "playing"
    PAUSED    = "paused"
    GAME_OVER = "game_over"


TRANSITIONS = {
    SessionState.MENU:      {SessionState.LOADING, SessionState.PLAYING},
    SessionState.LOADING:   {SessionState.PLAYING, SessionState.MENU},
    SessionState.PLAYING:   {SessionState.PAUSED, SessionState.GAME_OVER, SessionState.MENU},
    SessionState.PAUSED:    {SessionState.PLAYING, SessionState.MENU, SessionState.GAME_OVER},
    SessionState.GAME_OVER: {SessionState.MENU, SessionState.PLAYING},
}

# Entering PLAYING from any of these starts a fresh game.
NEW_GAME_FROM = {SessionState.MENU, SessionState.LOADING, SessionState.GAME_OVER}


@dataclass
class GameStatistics:
    duration: int = 0           # whole seconds, paused time excluded
    food_consumed: int = 0
    max_snake_length: int = 0
    average_speed: float = 0.0  # max length per second played


@dataclass(frozen=True)
class GameOverState:
    is_game_over: bool = False
    cause: Optional[str] = None          # "boundary" | "self"
    final_score: int = 0
    timestamp: float = 0.0
    collision_position: Optional[Position] = None
    game_stats: Optional[GameStatistics] = None


@dataclass
class SessionData:
    game_start_time: float = 0.0
    paused_at: Optional[float] = None
    total_paused_duration: float = 0.0
    stats: GameStatistics = field(default_factory=GameStatistics)


class SessionStateMachine:

    def __init__(self, clock: Callable[[], float]):
        self.clock = clock
        self.state: SessionState = SessionState.MENU
        self.previous: Optional[SessionState] = None
        self.data = SessionData()
        self._history: list[SessionState] = [SessionState.MENU]
        self._state_listeners: dict[SessionState, list] = {s: [] for s in SessionState}
        self._transition_listeners: list = []

    # ── Transitions ──────────────────────────────────────────────
    def can_transition(self, target: SessionState) -> bool:
        return SessionState(target) in TRANSITIONS[self.state]

    def available_transitions(self) -> set[SessionState]:
        return set(TRANSITIONS[self.state])

    def transition_to(self, target: SessionState) -> bool:
        target = SessionState(target)
        if not self.can_transition(target):
            logger.warning("Invalid state transition from %s to %s",
                           self.state.value, target.value)
            return False

        previous, self.state = self.state, target
        self.previous = previous
        self._history.append(target)
        self._enter(target, previous)
        logger.debug("Session: %s -> %s", previous.value, target.value)

        for callback in list(self._transition_listeners):
            self._call(callback, previous, target)
        for callback in list(self._state_listeners[target]):
            self._call(callback, self.data)
        return True

    def _enter(self, state: SessionState, previous: SessionState) -> None:
        now = self.clock()
        if state is SessionState.PLAYING:
            if previous in NEW_GAME_FROM:
                self.data = SessionData(game_start_time=now)
            elif previous is SessionState.PAUSED and self.data.paused_at is not None:
                self.data.total_paused_duration += now - self.data.paused_at
                self.data.paused_at = None
        elif state is SessionState.PAUSED:
            self.data.paused_at = now
        elif state is SessionState.GAME_OVER:
            self._freeze_stats(now)
        elif state is SessionState.MENU:
            self.data = SessionData()

    def _freeze_stats(self, now: float) -> None:
        if self.data.paused_at is not None:
            self.data.total_paused_duration += now - self.data.paused_at
            self.data.paused_at = None
        self.data.stats.duration = int(self.played_ms(now) // 1000)
        if self.data.stats.duration > 0:
            self.data.stats.average_speed = self.data.stats.max_snake_length / self.data.stats.duration

    # ── Queries ──────────────────────────────────────────────────
    def played_ms(self, now: Optional[float] = None) -> float:
        """Time spent in play since the game started, pauses excluded."""
        if now is None:
            now = self.clock()
        paused = self.data.total_paused_duration
        if self.data.paused_at is not None:
            paused += now - self.data.paused_at
        return max(0.0, now - self.data.game_start_time - paused)

    def history(self) -> list[SessionState]:
        return list(self._history)

    @property
    def is_playing(self) -> bool:
        return self.state is SessionState.PLAYING

    # ── Subscriptions ────────────────────────────────────────────
    def on_state(self, state: SessionState,
                 callback: Callable[[SessionData], None]) -> Callable[[], None]:
        listeners = self._state_listeners[SessionState(state)]
        listeners.append(callback)
        return lambda: listeners.remove(callback) if callback in listeners else None

    def on_transition(self, callback: Callable[[SessionState, SessionState], None]) -> Callable[[], None]:
        self._transition_listeners.append(callback)
        listeners = self._transition_listeners
        return lambda: listeners.remove(callback) if callback in listeners else None

    @staticmethod
    def _call(callback, *args) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Session listener %r failed", callback)
