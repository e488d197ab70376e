"""
config.py — Shared constants and engine settings for the entire application.
No game logic, no imports from internal modules.
"""

from dataclasses import dataclass

# ── Grid ──────────────────────────────────────────────────────────
CELL            = 20
COLS            = 30
ROWS            = 20
INITIAL_LENGTH  = 3

# ── Window (reference host only) ──────────────────────────────────
PANEL_H         = 60
GAME_W, GAME_H  = COLS * CELL, ROWS * CELL
OFFSET_X        = 10
OFFSET_Y        = PANEL_H + 10
WIDTH           = GAME_W + OFFSET_X * 2
HEIGHT          = OFFSET_Y + GAME_H + 10
FPS             = 60

# ── Colors ────────────────────────────────────────────────────────
BG          = (10,  10,  15)
GRID_COL    = (15,  20,  32)
SNAKE_COL   = (0,   255, 136)
SNAKE_DIM   = (0,   140, 80)
DEATH_COL   = (255, 51,  102)
COMBO_COL   = (255, 228, 77)
UI_COL      = (120, 120, 170)
BLACK       = (0,   0,   0)
PANEL_BG    = (12,  12,  20)
BORDER_COL  = (26,  26,  62)

# One color per food number.
FOOD_COLORS = {
    1: (255, 107, 107),   # red
    2: (78,  205, 196),   # teal
    3: (69,  183, 209),   # blue
    4: (255, 160, 122),   # salmon
    5: (152, 216, 200),   # mint
}

# ── Food & scoring ────────────────────────────────────────────────
FOOD_SLOTS          = 5
MAX_SPAWN_ATTEMPTS  = 100
BASE_FOOD_VALUE     = 10      # food #n is worth BASE_FOOD_VALUE * n
COMBO_BONUS         = 5       # awarded on 1 → 2 → 3 → 4 → 5
COMBO_WINDOW_MS     = 2000    # micro-combo window between two foods
MICRO_COMBO_BONUS   = 2       # per food that extends a micro-combo
MICRO_COMBO_CAP     = 5       # largest micro-combo multiplier
SCORE_HISTORY_SIZE  = 1000
SCORE_MILESTONES    = (100, 250, 500, 1000, 2500)
INPUT_QUEUE_SIZE    = 2

# ── Speed (ms per tick) ───────────────────────────────────────────
BASE_TICK_MS        = 150
TICK_STEP_MS        = 15
FASTEST_TICK_MS     = 60
MAX_FRAME_MS        = 250     # longer gaps are clamped, never replayed
MAX_STEPS_PER_FRAME = 3

DIFFICULTIES = {
    1: {"label": "EASY",   "base_ms": 200, "step_ms": 10, "fastest_ms": 100},
    2: {"label": "NORMAL", "base_ms": 150, "step_ms": 15, "fastest_ms": 60},
    3: {"label": "HARD",   "base_ms": 120, "step_ms": 20, "fastest_ms": 40},
    4: {"label": "INSANE", "base_ms": 100, "step_ms": 25, "fastest_ms": 25},
}
DEFAULT_DIFFICULTY = 2


# ── Engine settings ───────────────────────────────────────────────
@dataclass
class EngineConfig:
    """Everything the simulation needs at construction time."""

    cell_size: int = CELL
    cols: int = COLS
    rows: int = ROWS
    initial_length: int = INITIAL_LENGTH
    base_food_value: int = BASE_FOOD_VALUE
    combo_bonus: int = COMBO_BONUS
    combo_window_ms: int = COMBO_WINDOW_MS
    micro_combo_bonus: int = MICRO_COMBO_BONUS
    micro_combo_cap: int = MICRO_COMBO_CAP
    wrap_around: bool = False
    base_tick_ms: int = BASE_TICK_MS
    tick_step_ms: int = TICK_STEP_MS
    fastest_tick_ms: int = FASTEST_TICK_MS
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {self.cell_size}")
        # spawn() centres the head at cols // 2 and trails the body to the left
        if self.initial_length < 1 or self.cols // 2 < self.initial_length - 1 or self.rows < 1:
            raise ValueError(
                f"board {self.cols}x{self.rows} cannot hold a snake of length {self.initial_length}"
            )
        if self.cols * self.rows < self.initial_length + FOOD_SLOTS:
            raise ValueError("board too small for the snake plus five foods")
        if self.combo_window_ms < 0:
            raise ValueError("combo_window_ms must not be negative")
        if not (0 < self.fastest_tick_ms <= self.base_tick_ms):
            raise ValueError("fastest_tick_ms must be in (0, base_tick_ms]")

    @property
    def width(self) -> int:
        """Board width in pixels."""
        return self.cols * self.cell_size

    @property
    def height(self) -> int:
        """Board height in pixels."""
        return self.rows * self.cell_size

    @classmethod
    def for_difficulty(cls, level: int, **overrides) -> "EngineConfig":
        preset = DIFFICULTIES[level]
        return cls(
            base_tick_ms=preset["base_ms"],
            tick_step_ms=preset["step_ms"],
            fastest_tick_ms=preset["fastest_ms"],
            **overrides,
        )
