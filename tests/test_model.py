"""
Tests for model.py - grid, directions, collision, direction queue and snake.
"""

import pytest

from combo_snake.model import (
    Board,
    CollisionType,
    Direction,
    DirectionQueue,
    Position,
    Snake,
    SnakeSegment,
    classify_collision,
)


class TestDirection:
    """Tests for the Direction enum."""

    @pytest.mark.parametrize("direction, opposite", [
        (Direction.UP, Direction.DOWN),
        (Direction.DOWN, Direction.UP),
        (Direction.LEFT, Direction.RIGHT),
        (Direction.RIGHT, Direction.LEFT),
    ])
    def test_opposite(self, direction, opposite):
        assert direction.opposite is opposite
        assert direction.is_opposite(opposite)

    def test_perpendicular_is_not_opposite(self):
        assert not Direction.UP.is_opposite(Direction.LEFT)
        assert not Direction.RIGHT.is_opposite(Direction.RIGHT)

    def test_vector(self):
        assert Direction.UP.vector == (0, -1)

    def test_cell_conversion(self):
        assert Position.from_cell(3, 4, 10) == Position(30, 40)
        assert Position(30, 40).to_cell(10) == (3, 4)

    def test_position_shift_uses_cell_size(self):
        assert Position(20, 20).shifted(Direction.UP, 10) == Position(20, 10)
        assert Position(20, 20).shifted(Direction.RIGHT, 10) == Position(30, 20)


class TestBoard:
    """Tests for board geometry."""

    def test_contains(self, board):
        assert board.contains(Position(0, 0))
        assert board.contains(Position(90, 90))
        assert not board.contains(Position(100, 0))
        assert not board.contains(Position(0, -10))

    def test_wrap_only_in_wrap_mode(self, board):
        assert board.wrap(Position(100, 50)) == Position(100, 50)
        wrapping = board._replace(wrap_around=True)
        assert wrapping.wrap(Position(100, 50)) == Position(0, 50)
        assert wrapping.wrap(Position(-10, 50)) == Position(90, 50)

    def test_cells_are_row_major(self, board):
        cells = list(board.cells())
        assert len(cells) == 100
        assert cells[0] == Position(0, 0)
        assert cells[1] == Position(10, 0)
        assert cells[10] == Position(0, 10)


class TestCollision:
    """Tests for classify_collision."""

    def test_wall(self, board):
        assert classify_collision([Position(90, 50)], Position(100, 50), board) is CollisionType.WALL

    def test_self(self, board):
        body = [Position(50, 50), Position(60, 50), Position(60, 60)]
        assert classify_collision(body, Position(60, 60), board) is CollisionType.SELF

    def test_free_cell(self, board):
        assert classify_collision([Position(50, 50)], Position(60, 50), board) is CollisionType.NONE

    def test_no_wall_when_wrapping(self, board):
        wrapping = board._replace(wrap_around=True)
        assert classify_collision([Position(90, 50)], Position(100, 50), wrapping) is CollisionType.NONE


class TestDirectionQueue:
    """Tests for the buffered direction queue."""

    def test_rejects_reversal(self):
        queue = DirectionQueue(Direction.RIGHT)
        assert queue.request(Direction.LEFT) is False
        assert len(queue) == 0

    def test_same_then_reverse_then_turn(self):
        queue = DirectionQueue(Direction.RIGHT)
        assert queue.request(Direction.RIGHT) is True
        assert queue.request(Direction.LEFT) is False
        assert queue.request(Direction.UP) is True

    def test_accepts_turn_and_drains_in_order(self):
        queue = DirectionQueue(Direction.RIGHT)
        assert queue.request(Direction.UP)
        assert queue.request(Direction.RIGHT)
        assert queue.drain() is Direction.UP
        assert queue.drain() is Direction.RIGHT
        assert queue.current is Direction.RIGHT
        assert queue.drain() is None

    def test_full_queue_replaces_newest(self):
        queue = DirectionQueue(Direction.RIGHT, capacity=2)
        queue.request(Direction.UP)
        queue.request(Direction.RIGHT)
        queue.request(Direction.DOWN)
        assert queue.pending() == [Direction.UP, Direction.DOWN]

    def test_stale_reversal_dropped_at_drain(self):
        """UP then DOWN are both legal against RIGHT, but DOWN reverses UP."""
        queue = DirectionQueue(Direction.RIGHT)
        queue.request(Direction.UP)
        queue.request(Direction.DOWN)
        assert queue.drain() is Direction.UP
        assert queue.drain() is None
        assert queue.current is Direction.UP

    def test_reset(self):
        queue = DirectionQueue(Direction.RIGHT)
        queue.request(Direction.UP)
        queue.reset(Direction.LEFT)
        assert queue.current is Direction.LEFT
        assert queue.pending() == []


class TestSnake:
    """Tests for the Snake class."""

    def test_spawn_is_centered_heading_right(self, board):
        snake = Snake.spawn(board, 3)
        assert snake.cells() == [Position(50, 50), Position(40, 50), Position(30, 50)]
        assert snake.direction is Direction.RIGHT
        assert snake.is_growing is False

    def test_segment_ids(self, board):
        snake = Snake.spawn(board, 3)
        assert [s.id for s in snake.segments] == ["head", "body-1", "body-2"]

    def test_three_ticks_right(self, board):
        """Each tick moves the head one cell and keeps the length."""
        snake = Snake.spawn(board, 3)
        for expected_x in (60, 70, 80):
            result = snake.step(Direction.RIGHT)
            assert result.success
            assert snake.head == Position(expected_x, 50)
            assert len(snake) == 3

    def test_step_reports_removed_tail(self, board):
        snake = Snake.spawn(board, 3)
        result = snake.step()
        assert result.new_head == Position(60, 50)
        assert result.removed_tail == SnakeSegment(30, 50, "body-2")

    def test_wall_collision_leaves_body_unchanged(self, board):
        snake = Snake([(90, 50), (80, 50), (70, 50)], Direction.RIGHT, board)
        before = snake.cells()
        result = snake.step(Direction.RIGHT)
        assert result.success is False
        assert result.collision_type is CollisionType.WALL
        assert result.new_head == Position(100, 50)
        assert snake.cells() == before

    def test_self_collision_includes_tail(self, board):
        """Stepping into the cell the tail is about to leave still collides."""
        snake = Snake([(50, 50), (60, 50), (60, 60), (50, 60)], Direction.LEFT, board)
        before = snake.cells()
        result = snake.step(Direction.DOWN)
        assert result.collision_type is CollisionType.SELF
        assert snake.cells() == before

    def test_growth_only_after_grow(self, board):
        snake = Snake.spawn(board, 3)
        snake.step()
        assert len(snake) == 3
        snake.grow()
        result = snake.step()
        assert len(snake) == 4
        assert result.removed_tail is None
        assert snake.is_growing is False
        snake.step()
        assert len(snake) == 4

    def test_grow_does_not_stack(self, board):
        snake = Snake.spawn(board, 3)
        snake.grow()
        snake.grow()
        snake.step()
        snake.step()
        assert len(snake) == 4

    def test_wrap_around_moves_through_edge(self, board):
        wrapping = board._replace(wrap_around=True)
        snake = Snake([(90, 50), (80, 50), (70, 50)], Direction.RIGHT, wrapping)
        result = snake.step()
        assert result.success
        assert snake.head == Position(0, 50)

    def test_copy_is_independent(self, board):
        snake = Snake.spawn(board, 3)
        clone = snake.copy()
        clone.step()
        assert snake.head == Position(50, 50)
        assert clone.head == Position(60, 50)
