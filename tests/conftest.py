"""
Shared fixtures for the combo_snake test suite.

Nothing here imports pygame: the engine is exercised headless.
"""

from dataclasses import replace

import pytest

from combo_snake.config import EngineConfig
from combo_snake.engine import GameEngine
from combo_snake.food import FOOD_NUMBERS
from combo_snake.model import Board, Position


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def board():
    """10x10 cells of 10px; center cell is (50, 50)."""
    return Board(cell_size=10, cols=10, rows=10)


@pytest.fixture
def config():
    """20x20 cells of 10px; the snake spawns with its head at (100, 100)."""
    return EngineConfig(cell_size=10, cols=20, rows=20, seed=1234)


@pytest.fixture
def engine(config, clock):
    return GameEngine(config, clock=clock)


@pytest.fixture
def park_foods():
    """
    Pin food positions so tests control what the snake eats.

    Numbers in `placements` go where asked; the rest are lined up along the
    top row, well away from the spawn point.
    """
    def park(engine, placements=None):
        placements = dict(placements or {})
        taken = set(placements.values())
        spare = (
            Position.from_cell(col, 0, engine.board.cell_size)
            for col in range(engine.board.cols)
        )
        for number in FOOD_NUMBERS:
            pos = placements.get(number)
            if pos is None:
                pos = next(p for p in spare if p not in taken)
            food = engine.food.get(number)
            engine.food._foods[number] = replace(food, position=Position(*pos))
    return park
