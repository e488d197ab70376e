"""
food.py — Numbered food slots.

Keeps exactly five foods on the board, numbered 1 to 5. Eating one
immediately respawns the same number somewhere free, so the board never
holds fewer than five.

Placement: up to MAX_SPAWN_ATTEMPTS uniform random cells, then a row-major
scan for the first free cell. Randomness comes from an injected
random.Random so a seeded game places food identically every time.
"""

import itertools
import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple, Optional

from .config import BASE_FOOD_VALUE, FOOD_COLORS, FOOD_SLOTS, MAX_SPAWN_ATTEMPTS
from .model import Board, InvariantViolation, Position

logger = logging.getLogger(__name__)

FOOD_NUMBERS = tuple(range(1, FOOD_SLOTS + 1))


@dataclass(frozen=True)
class NumberedFood:
    id: str
    number: int
    position: Position
    color: tuple
    timestamp: float
    value: int


class FoodConsumption(NamedTuple):
    consumed_food: NumberedFood
    new_food: NumberedFood


class FoodSpawnManager:
    """Owns the five food slots. Callers only ever see copies."""

    def __init__(
        self,
        board: Board,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = lambda: 0.0,
        base_value: int = BASE_FOOD_VALUE,
        max_attempts: int = MAX_SPAWN_ATTEMPTS,
    ):
        self.board = board
        self.rng = rng or random.Random()
        self.clock = clock
        self.base_value = base_value
        self.max_attempts = max_attempts
        self._foods: dict[int, NumberedFood] = {}
        self._serial = itertools.count(1)

    # ── Public API ───────────────────────────────────────────────
    def initialize(self, snake_cells: Iterable[Position]) -> list[NumberedFood]:
        """Place foods 1..5 clear of the snake and of each other."""
        self._foods.clear()
        snake_cells = set(snake_cells)
        for number in FOOD_NUMBERS:
            blocked = snake_cells | self._food_cells()
            self._foods[number] = self._spawn(number, blocked)
        return self.foods()

    def consume(self, number: int, snake_cells: Iterable[Position]) -> Optional[FoodConsumption]:
        """
        Remove food `number` and respawn the same number elsewhere.
        Returns None if no such food is on the board.
        """
        food = self._foods.pop(number, None)
        if food is None:
            return None

        blocked = set(snake_cells) | self._food_cells() | {food.position}
        new_food = self._spawn(number, blocked)
        self._foods[number] = new_food

        if len(self._foods) != FOOD_SLOTS:
            raise InvariantViolation(
                f"expected {FOOD_SLOTS} food slots after consume, found {len(self._foods)}"
            )
        return FoodConsumption(food, new_food)

    def reset(self) -> None:
        self._foods.clear()

    # ── Queries ──────────────────────────────────────────────────
    def foods(self) -> list[NumberedFood]:
        return [self._foods[n] for n in sorted(self._foods)]

    def get(self, number: int) -> Optional[NumberedFood]:
        return self._foods.get(number)

    def food_at(self, pos: Position) -> Optional[NumberedFood]:
        for food in self._foods.values():
            if food.position == pos:
                return food
        return None

    def validate(self, snake_cells: Iterable[Position] = ()) -> list[str]:
        """Diagnostic check of the slot invariants. An empty list means valid."""
        errors = []
        if len(self._foods) != FOOD_SLOTS:
            errors.append(f"Expected {FOOD_SLOTS} foods, but found {len(self._foods)}")
        for number in FOOD_NUMBERS:
            if number not in self._foods:
                errors.append(f"Missing food number {number}")
        for number, food in self._foods.items():
            if food.number != number:
                errors.append(f"Slot {number} holds food number {food.number}")

        positions = [f.position for f in self._foods.values()]
        if len(positions) != len(set(positions)):
            errors.append("Found overlapping food positions")
        on_snake = set(positions) & set(snake_cells)
        if on_snake:
            errors.append(f"Food placed on snake at {sorted(on_snake)}")
        for pos in positions:
            if not self.board.contains(pos) or pos.x % self.board.cell_size or pos.y % self.board.cell_size:
                errors.append(f"Food off the grid at {pos}")
        return errors

    def stats(self) -> dict:
        foods = self.foods()
        return {
            "total_foods": len(foods),
            "oldest": min(foods, key=lambda f: f.timestamp, default=None),
            "newest": max(foods, key=lambda f: f.timestamp, default=None),
        }

    # ── Private helpers ──────────────────────────────────────────
    def _food_cells(self) -> set[Position]:
        return {f.position for f in self._foods.values()}

    def _spawn(self, number: int, blocked: set[Position]) -> NumberedFood:
        pos = self.find_free_cell(blocked)
        if pos is None:
            raise InvariantViolation(f"no free cell left for food {number}")
        return NumberedFood(
            id=f"food-{number}-{next(self._serial)}",
            number=number,
            position=pos,
            color=FOOD_COLORS[number],
            timestamp=self.clock(),
            value=self.base_value * number,
        )

    def find_free_cell(self, blocked: set[Position]) -> Optional[Position]:
        """Random cell not in `blocked`; falls back to a linear scan. None if full."""
        for _ in range(self.max_attempts):
            pos = Position.from_cell(
                self.rng.randrange(self.board.cols),
                self.rng.randrange(self.board.rows),
                self.board.cell_size,
            )
            if pos not in blocked:
                return pos

        logger.warning("Random food placement failed after %d attempts; scanning grid",
                       self.max_attempts)
        for pos in self.board.cells():
            if pos not in blocked:
                return pos
        return None
