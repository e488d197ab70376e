"""
Tests for food.py - the five numbered food slots.
"""

import random
from dataclasses import replace

import pytest

from combo_snake.config import FOOD_COLORS
from combo_snake.food import FOOD_NUMBERS, FoodSpawnManager
from combo_snake.model import Board, InvariantViolation, Position


SNAKE = [Position(50, 50), Position(40, 50), Position(30, 50)]


@pytest.fixture
def manager(board, clock):
    m = FoodSpawnManager(board, random.Random(99), clock)
    m.initialize(SNAKE)
    return m


class TestInitialize:
    """Tests for initial placement."""

    def test_places_five_numbered_foods(self, manager):
        foods = manager.foods()
        assert [f.number for f in foods] == [1, 2, 3, 4, 5]
        assert len({f.position for f in foods}) == 5

    def test_foods_avoid_snake(self, manager):
        assert not {f.position for f in manager.foods()} & set(SNAKE)
        assert manager.validate(SNAKE) == []

    def test_value_and_color_follow_number(self, manager):
        for food in manager.foods():
            assert food.value == 10 * food.number
            assert food.color == FOOD_COLORS[food.number]

    def test_positions_on_grid(self, manager, board):
        for food in manager.foods():
            assert board.contains(food.position)
            assert food.position.x % board.cell_size == 0
            assert food.position.y % board.cell_size == 0

    def test_same_seed_same_layout(self, board):
        a = FoodSpawnManager(board, random.Random(5))
        b = FoodSpawnManager(board, random.Random(5))
        assert [f.position for f in a.initialize(SNAKE)] == [f.position for f in b.initialize(SNAKE)]

    def test_reinitialize_replaces_everything(self, manager):
        old_ids = {f.id for f in manager.foods()}
        manager.initialize(SNAKE)
        assert not old_ids & {f.id for f in manager.foods()}


class TestConsume:
    """Tests for consuming and respawning food."""

    def test_respawns_same_number(self, manager):
        eaten = manager.get(3)
        result = manager.consume(3, SNAKE)
        assert result.consumed_food == eaten
        assert result.new_food.number == 3
        assert result.new_food.id != eaten.id
        assert result.new_food.position != eaten.position

    def test_always_five_foods(self, manager):
        for number in (1, 5, 2, 2, 4, 3, 1):
            manager.consume(number, SNAKE)
            assert len(manager.foods()) == 5
            assert manager.validate(SNAKE) == []

    def test_new_food_avoids_snake_and_other_foods(self, manager):
        others = {f.position for f in manager.foods() if f.number != 4}
        new = manager.consume(4, SNAKE).new_food
        assert new.position not in SNAKE
        assert new.position not in others

    def test_unknown_number_returns_none(self, manager):
        assert manager.consume(9, SNAKE) is None
        assert len(manager.foods()) == 5

    def test_timestamp_from_clock(self, manager, clock):
        clock.advance(250)
        assert manager.consume(1, SNAKE).new_food.timestamp == clock.now

    def test_food_at(self, manager):
        food = manager.get(2)
        assert manager.food_at(food.position) == food
        assert manager.food_at(Position(-10, -10)) is None


class TestPlacementFallback:
    """Tests for the linear scan and the full-board failure."""

    def test_scan_fills_row_major(self):
        board = Board(cell_size=10, cols=3, rows=2)
        manager = FoodSpawnManager(board, random.Random(1), max_attempts=0)
        foods = manager.initialize([Position(0, 0)])
        assert [f.position for f in foods] == [
            Position(10, 0), Position(20, 0),
            Position(0, 10), Position(10, 10), Position(20, 10),
        ]

    def test_scan_is_logged(self, caplog):
        board = Board(cell_size=10, cols=3, rows=2)
        manager = FoodSpawnManager(board, random.Random(1), max_attempts=0)
        with caplog.at_level("WARNING", logger="combo_snake.food"):
            manager.initialize([])
        assert "scanning grid" in caplog.text

    def test_no_free_cell_raises(self):
        board = Board(cell_size=10, cols=2, rows=2)
        manager = FoodSpawnManager(board, random.Random(1))
        with pytest.raises(InvariantViolation):
            manager.initialize([])


class TestValidate:
    """Tests for the diagnostic validator."""

    def test_detects_overlap(self, manager):
        first = manager.get(1)
        manager._foods[2] = replace(manager.get(2), position=first.position)
        assert any("overlapping" in e for e in manager.validate(SNAKE))

    def test_detects_missing_slot(self, manager):
        del manager._foods[5]
        errors = manager.validate(SNAKE)
        assert "Missing food number 5" in errors
        assert any("Expected 5 foods" in e for e in errors)

    def test_detects_food_on_snake(self, manager):
        manager._foods[1] = replace(manager.get(1), position=SNAKE[0])
        assert any("on snake" in e for e in manager.validate(SNAKE))

    def test_stats(self, manager):
        stats = manager.stats()
        assert stats["total_foods"] == len(FOOD_NUMBERS)
