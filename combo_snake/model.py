"""
model.py — Grid, direction, collision and snake rules.

Owns the lowest layer of game state. Zero rendering, zero input handling,
zero timing. Everything here is deterministic given its inputs.

Classes:
    Position        — immutable pixel coordinate on the grid
    Direction       — the four unit directions
    Board           — board geometry, grid <-> pixel conversion, wrap-around
    CollisionType   — WALL / SELF / NONE
    SnakeSegment    — Position plus an ordinal id ("head", "body-<n>")
    DirectionQueue  — validated, fixed-capacity buffer of turn requests
    Snake           — body, direction, growth flag, one-step movement
"""

import logging
from collections import deque
from enum import Enum
from typing import NamedTuple, Optional

from .config import INPUT_QUEUE_SIZE

logger = logging.getLogger(__name__)


class InvariantViolation(RuntimeError):
    """A programming error: engine state broke one of its own invariants."""


# ─────────────────────────── Position ────────────────────────────
class Position(NamedTuple):
    """Pixel coordinate; always a multiple of the cell size on a valid board."""
    x: int
    y: int

    def shifted(self, direction: "Direction", cell_size: int) -> "Position":
        return Position(self.x + direction.x * cell_size,
                        self.y + direction.y * cell_size)

    def to_cell(self, cell_size: int) -> tuple[int, int]:
        return self.x // cell_size, self.y // cell_size

    @classmethod
    def from_cell(cls, col: int, row: int, cell_size: int) -> "Position":
        return cls(col * cell_size, row * cell_size)


# ─────────────────────────── Direction ───────────────────────────
class Direction(Enum):
    """Immutable 2-D unit direction."""
    UP    = (0, -1)
    DOWN  = (0,  1)
    LEFT  = (-1, 0)
    RIGHT = (1,  0)

    @property
    def x(self) -> int:
        return self.value[0]

    @property
    def y(self) -> int:
        return self.value[1]

    @property
    def vector(self) -> tuple[int, int]:
        return self.value

    @property
    def opposite(self) -> "Direction":
        return Direction((-self.x, -self.y))

    def is_opposite(self, other: "Direction") -> bool:
        return self.x == -other.x and self.y == -other.y


# ──────────────────────────── Board ──────────────────────────────
class Board(NamedTuple):
    """Board geometry. Width and height are in cells; positions are in pixels."""
    cell_size: int
    cols: int
    rows: int
    wrap_around: bool = False

    @property
    def width(self) -> int:
        return self.cols * self.cell_size

    @property
    def height(self) -> int:
        return self.rows * self.cell_size

    def contains(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def wrap(self, pos: Position) -> Position:
        """Map an off-board position back onto the board (wrap-around mode only)."""
        if not self.wrap_around:
            return pos
        return Position(pos.x % self.width, pos.y % self.height)

    def cells(self):
        """Every cell, row-major, as pixel positions."""
        for row in range(self.rows):
            for col in range(self.cols):
                yield Position.from_cell(col, row, self.cell_size)

    def center(self) -> Position:
        return Position.from_cell(self.cols // 2, self.rows // 2, self.cell_size)


# ─────────────────────────── Collision ───────────────────────────
class CollisionType(str, Enum):
    WALL = "wall"
    SELF = "self"
    NONE = "none"


def classify_collision(body, candidate: Position, board: Board) -> CollisionType:
    """
    Classify a candidate head position.

    The whole current body counts, tail included: a snake may not step into
    the cell its own tail is vacating on this same tick.
    """
    if not board.wrap_around and not board.contains(candidate):
        return CollisionType.WALL
    if candidate in body:
        return CollisionType.SELF
    return CollisionType.NONE


# ────────────────────────── SnakeSegment ─────────────────────────
class SnakeSegment(NamedTuple):
    x: int
    y: int
    id: str

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)


def segment_id(index: int) -> str:
    return "head" if index == 0 else f"body-{index}"


# ───────────────────────── DirectionQueue ────────────────────────
class DirectionQueue:
    """
    Buffers direction changes between ticks.

    Requests are validated against the applied direction when they arrive and
    again when drained, since a turn queued two ticks ago may have become a
    reversal in the meantime.
    """

    def __init__(self, initial: Direction = Direction.RIGHT,
                 capacity: int = INPUT_QUEUE_SIZE):
        self.current: Direction = initial
        self.capacity = capacity
        self._buffer: deque[Direction] = deque()

    def request(self, direction: Direction) -> bool:
        """Queue a direction change. Returns False for a 180° reversal."""
        if direction.is_opposite(self.current):
            return False
        if len(self._buffer) >= self.capacity:
            self._buffer[-1] = direction
        else:
            self._buffer.append(direction)
        return True

    def drain(self) -> Optional[Direction]:
        """Apply the oldest still-valid buffered direction, if any."""
        while self._buffer:
            candidate = self._buffer.popleft()
            if not candidate.is_opposite(self.current):
                self.current = candidate
                return candidate
            logger.debug("Dropped stale turn %s (now heading %s)",
                         candidate.name, self.current.name)
        return None

    def pending(self) -> list[Direction]:
        return list(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def reset(self, direction: Direction = Direction.RIGHT) -> None:
        self.current = direction
        self._buffer.clear()

    def __len__(self) -> int:
        return len(self._buffer)


# ──────────────────────────── Snake ──────────────────────────────
class MoveResult(NamedTuple):
    success: bool
    collision_type: CollisionType
    new_head: Position
    removed_tail: Optional[SnakeSegment] = None


class Snake:
    """
    Pure game data for the snake.
    No rendering. No input handling.
    """

    def __init__(self, body, direction: Direction, board: Board):
        self.body: deque[Position] = deque(Position(*p) for p in body)
        self.direction: Direction = direction
        self.next_direction: Direction = direction
        self.is_growing: bool = False
        self.board = board

    @classmethod
    def spawn(cls, board: Board, length: int) -> "Snake":
        """Centered, heading right, tail trailing to the left."""
        cx, cy = board.center()
        body = [Position(cx - i * board.cell_size, cy) for i in range(length)]
        return cls(body, Direction.RIGHT, board)

    # ── Accessors ────────────────────────────────────────────────
    @property
    def head(self) -> Position:
        return self.body[0]

    @property
    def segments(self) -> list[SnakeSegment]:
        return [SnakeSegment(p.x, p.y, segment_id(i)) for i, p in enumerate(self.body)]

    def cells(self) -> list[Position]:
        return list(self.body)

    def occupies(self, pos: Position) -> bool:
        return pos in self.body

    def __len__(self) -> int:
        return len(self.body)

    # ── Commands ─────────────────────────────────────────────────
    def next_head(self, direction: Optional[Direction] = None) -> Position:
        step_dir = direction or self.direction
        return self.board.wrap(self.head.shifted(step_dir, self.board.cell_size))

    def step(self, requested: Optional[Direction] = None) -> MoveResult:
        """
        Advance one cell.
        On collision nothing is mutated and the failure is returned.
        """
        move_dir = requested or self.direction
        new_head = self.next_head(move_dir)

        collision = classify_collision(self.body, new_head, self.board)
        if collision is not CollisionType.NONE:
            return MoveResult(False, collision, new_head)

        removed_tail = None
        if self.is_growing:
            self.is_growing = False
        else:
            tail = self.body.pop()
            removed_tail = SnakeSegment(tail.x, tail.y, segment_id(len(self.body)))
        self.body.appendleft(new_head)

        self.direction = move_dir
        self.next_direction = move_dir
        return MoveResult(True, CollisionType.NONE, new_head, removed_tail)

    def grow(self) -> None:
        """Keep the tail on the next successful step. Does not stack."""
        self.is_growing = True

    def copy(self) -> "Snake":
        clone = Snake(self.body, self.direction, self.board)
        clone.next_direction = self.next_direction
        clone.is_growing = self.is_growing
        return clone
