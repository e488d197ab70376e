"""
engine.py — The simulation engine.

Owns ALL game state and rules. Zero rendering, zero input handling, zero
wall-clock pacing. The host calls step() exactly once per fixed tick and
reads snapshot() whenever it wants to draw.

Per tick:
    direction queue → snake step (collision check) → food → scoring/combo
    → speed; a collision moves the session to GAME_OVER.

Public API:
    GameEngine(config, clock, rng)
    engine.step(direction=None)     → StepResult
    engine.snapshot()               → Snapshot (copies only)
    engine.request_direction(dir)   → bool
    engine.subscribe(event, cb)     → unsubscribe()
    engine.start() / pause() / resume() / restart() / to_menu()
"""

import logging
import random
import time
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Callable, Optional

from .config import DIFFICULTIES, EngineConfig
from .food import FoodConsumption, FoodSpawnManager, NumberedFood
from .model import (
    Board, CollisionType, Direction, DirectionQueue, InvariantViolation,
    Position, Snake, SnakeSegment,
)
from .scoring import ComboEvent, ComboEventType, ComboState, ComboTracker, ScoreLedger, ScoreType
from .session import NEW_GAME_FROM, GameOverState, GameStatistics, SessionState, SessionStateMachine
from .speed import SpeedManager

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class EngineEvent(str, Enum):
    SCORE        = "score"          # (score, ScoreEvent)
    COMBO        = "combo"          # (ComboEvent,)
    FOOD_EATEN   = "food_eaten"     # (FoodConsumption, snake_length)
    GAME_OVER    = "game_over"      # (GameOverState,)
    STATE_CHANGE = "state_change"   # (previous, current)
    SPEED_CHANGE = "speed_change"   # (SpeedChange,)


@dataclass(frozen=True)
class StepResult:
    success: bool
    collision_type: CollisionType
    new_head: Optional[Position] = None
    removed_tail: Optional[SnakeSegment] = None
    consumed_food: Optional[NumberedFood] = None
    new_food: Optional[NumberedFood] = None
    points_awarded: int = 0
    combo_event: Optional[ComboEvent] = None


@dataclass(frozen=True)
class Snapshot:
    snake: tuple
    direction: Direction
    foods: tuple
    combo_state: ComboState
    score: int
    session_state: SessionState
    tick: int
    tick_interval_ms: int
    speed_level: int
    micro_combo: int
    game_over: GameOverState


class GameEngine:
    """
    Top-level simulation object. One instance per player session; nothing
    is shared through module globals.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 clock: Optional[Callable[[], float]] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or EngineConfig()
        self.clock = clock or monotonic_ms
        self.rng = rng or random.Random(self.config.seed)
        self.board = Board(self.config.cell_size, self.config.cols,
                           self.config.rows, self.config.wrap_around)

        self.directions = DirectionQueue()
        self.food = FoodSpawnManager(self.board, self.rng, self.clock,
                                     base_value=self.config.base_food_value)
        self.combo = ComboTracker(bonus=self.config.combo_bonus)
        self.ledger = ScoreLedger(
            combo_window_ms=self.config.combo_window_ms,
            micro_combo_bonus=self.config.micro_combo_bonus,
            micro_combo_cap=self.config.micro_combo_cap,
        )
        self.speed = SpeedManager(self.config.base_tick_ms, self.config.tick_step_ms,
                                  self.config.fastest_tick_ms)
        self.session = SessionStateMachine(self.clock)

        self.snake: Snake = Snake.spawn(self.board, self.config.initial_length)
        self.tick: int = 0
        self._game_over = GameOverState()
        self._collision: Optional[tuple[str, Position]] = None
        self._listeners: dict[EngineEvent, list] = {e: [] for e in EngineEvent}

        # Engine hooks go first so listeners added later see fresh entities.
        self.session.on_transition(self._on_transition)
        self.ledger.subscribe(lambda score, event: self._emit(EngineEvent.SCORE, score, event))
        self.combo.subscribe(lambda event: self._emit(EngineEvent.COMBO, event))
        self.speed.subscribe(lambda change: self._emit(EngineEvent.SPEED_CHANGE, change))

        self._reset_entities()

    # ── Public API ───────────────────────────────────────────────
    def request_direction(self, direction: Direction) -> bool:
        accepted = self.directions.request(direction)
        if accepted:
            self.snake.next_direction = direction
        return accepted

    def step(self, direction: Optional[Direction] = None) -> StepResult:
        """Advance the simulation by exactly one tick."""
        if not self.session.is_playing:
            return StepResult(False, CollisionType.NONE)
        if direction is not None:
            self.request_direction(direction)

        self.directions.drain()
        move = self.snake.step(self.directions.current)
        self.tick += 1

        if not move.success:
            cause = "boundary" if move.collision_type is CollisionType.WALL else "self"
            self._collision = (cause, move.new_head)
            logger.info("Collision (%s) at %s on tick %d", cause, tuple(move.new_head), self.tick)
            self.session.transition_to(SessionState.GAME_OVER)
            return StepResult(False, move.collision_type, new_head=move.new_head)

        stats = self.session.data.stats
        stats.max_snake_length = max(stats.max_snake_length, len(self.snake))

        food = self.food.food_at(move.new_head)
        if food is None:
            return StepResult(True, CollisionType.NONE, move.new_head, move.removed_tail)
        return self._eat(food, move)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            snake=tuple(self.snake.segments),
            direction=self.snake.direction,
            foods=tuple(self.food.foods()),
            combo_state=self.combo.state(),
            score=self.ledger.score,
            session_state=self.session.state,
            tick=self.tick,
            tick_interval_ms=self.speed.interval_ms,
            speed_level=self.speed.level,
            micro_combo=self.ledger.combo_count,
            game_over=self.game_over_state(),
        )

    def subscribe(self, event: EngineEvent, callback: Callable) -> Callable[[], None]:
        listeners = self._listeners[EngineEvent(event)]
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)
        return unsubscribe

    # ── Session controls ─────────────────────────────────────────
    def transition_to(self, state: SessionState) -> bool:
        return self.session.transition_to(state)

    def start(self) -> bool:
        return self.session.transition_to(SessionState.PLAYING)

    def pause(self) -> bool:
        return self.session.state is SessionState.PLAYING and \
            self.session.transition_to(SessionState.PAUSED)

    def resume(self) -> bool:
        return self.session.state is SessionState.PAUSED and \
            self.session.transition_to(SessionState.PLAYING)

    def restart(self) -> bool:
        if self.session.state in (SessionState.PLAYING, SessionState.PAUSED):
            self.session.transition_to(SessionState.MENU)
        return self.session.transition_to(SessionState.PLAYING)

    def to_menu(self) -> bool:
        return self.session.transition_to(SessionState.MENU)

    def set_difficulty(self, level: int) -> None:
        if level not in DIFFICULTIES:
            return
        preset = DIFFICULTIES[level]
        self.speed.base_ms = preset["base_ms"]
        self.speed.step_ms = preset["step_ms"]
        self.speed.fastest_ms = preset["fastest_ms"]

    # ── Queries ──────────────────────────────────────────────────
    @property
    def state(self) -> SessionState:
        return self.session.state

    @property
    def score(self) -> int:
        return self.ledger.score

    @property
    def tick_interval_ms(self) -> int:
        return self.speed.interval_ms

    def game_over_state(self) -> GameOverState:
        """A copy; the frozen statistics inside stay owned by the engine."""
        stats = self._game_over.game_stats
        if stats is None:
            return self._game_over
        return replace(self._game_over, game_stats=replace(stats))

    def statistics(self):
        return self.ledger.statistics()

    def score_submission(self) -> dict:
        """Everything a high-score store needs once the game is over."""
        return {
            "game_over": asdict(self._game_over),
            "statistics": asdict(self.ledger.statistics()),
            "combos": self.combo.statistics(),
            "max_speed_level": self.speed.max_level,
        }

    def validate(self) -> list[str]:
        """Diagnostic sweep over every cross-component invariant."""
        cells = self.snake.cells()
        errors = self.food.validate(cells) + self.combo.validate()
        if len(set(cells)) != len(cells):
            errors.append("Snake overlaps itself")
        for cell in cells:
            if not self.board.contains(cell) or cell.x % self.board.cell_size or cell.y % self.board.cell_size:
                errors.append(f"Snake segment off the grid at {tuple(cell)}")
        size = self.board.cell_size
        for a, b in zip(cells, cells[1:]):
            dx, dy = abs(a.x - b.x), abs(a.y - b.y)
            if self.board.wrap_around:
                dx = min(dx, self.board.width - dx)
                dy = min(dy, self.board.height - dy)
            if dx + dy != size:
                errors.append(f"Snake is not contiguous between {tuple(a)} and {tuple(b)}")
        return errors

    # ── Private helpers ──────────────────────────────────────────
    def _eat(self, food: NumberedFood, move) -> StepResult:
        now = self.clock()
        consumption: Optional[FoodConsumption] = self.food.consume(food.number, self.snake.cells())
        if consumption is None:
            raise InvariantViolation(f"food {food.number} vanished before it could be eaten")

        self.snake.grow()
        self.session.data.stats.food_consumed += 1

        points = sum(e.points for e in self.ledger.record_food(food.value, now, food.position))
        combo = self.combo.process(food.number, now)
        if combo.event.type is ComboEventType.COMPLETED:
            points += self.ledger.add(ScoreType.COMBO, combo.points_awarded, now, food.position).points
            self.speed.on_combo_completed()
        elif combo.event.type is ComboEventType.BROKEN:
            self.speed.on_combo_broken()

        self._emit(EngineEvent.FOOD_EATEN, consumption, len(self.snake))
        return StepResult(
            success=True,
            collision_type=CollisionType.NONE,
            new_head=move.new_head,
            removed_tail=move.removed_tail,
            consumed_food=consumption.consumed_food,
            new_food=consumption.new_food,
            points_awarded=points,
            combo_event=combo.event,
        )

    def _reset_entities(self) -> None:
        self.snake = Snake.spawn(self.board, self.config.initial_length)
        self.directions.reset(self.snake.direction)
        self.food.initialize(self.snake.cells())
        self.combo.reset()
        self.ledger.reset()
        self.speed.reset()
        self.tick = 0
        self._collision = None
        self._game_over = GameOverState()
        self.session.data.stats.max_snake_length = len(self.snake)

    def _on_transition(self, previous: SessionState, current: SessionState) -> None:
        if current is SessionState.PLAYING and previous in NEW_GAME_FROM:
            self._reset_entities()
            logger.info("New game on a %dx%d board", self.board.cols, self.board.rows)
        elif current is SessionState.MENU:
            self._reset_entities()
        elif current is SessionState.GAME_OVER:
            self._finish_game()
        self._emit(EngineEvent.STATE_CHANGE, previous, current)

    def _finish_game(self) -> None:
        cause, position = self._collision or (None, None)
        stats = self.session.data.stats
        self._game_over = GameOverState(
            is_game_over=True,
            cause=cause,
            final_score=self.ledger.score,
            timestamp=self.clock(),
            collision_position=position,
            game_stats=GameStatistics(**asdict(stats)),
        )
        logger.info("Game over (%s): score %d, length %d",
                    cause or "ended", self.ledger.score, len(self.snake))
        self._emit(EngineEvent.GAME_OVER, self._game_over)

    def _emit(self, event: EngineEvent, *args) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(*args)
            except Exception:
                logger.exception("%s listener %r failed", event.value, callback)
