"""
controller.py — Controller layer.

Responsibilities:
  - Own the pygame event loop.
  - Translate raw keyboard events into engine commands.
  - Pace the simulation: a FixedStepClock decides how many engine ticks are
    due each frame; the engine itself never reads the wall clock for pacing.
  - Manage background music (load, loop, pause/resume/stop).
  - Relay engine events to the view (combo flashes, milestones).

Music notes:
  - song.mp3 must live in the same folder as this file (combo_snake/song.mp3).
  - Music pauses with the game and resumes with it.
  - If the file is missing the game runs silently with a logged warning.

The controller is the only layer that imports pygame directly for events.
"""

import logging
import os
import sys

import pygame

from .config import (
    WIDTH, HEIGHT, FPS, DEFAULT_DIFFICULTY, SCORE_MILESTONES,
    COMBO_COL, DEATH_COL, UI_COL, EngineConfig,
)
from .engine import EngineEvent, GameEngine
from .model import Direction
from .scoring import ComboEventType
from .session import SessionState
from .timing import FixedStepClock
from .view import GameView

logger = logging.getLogger(__name__)

_MUSIC_PATH = os.path.join(os.path.dirname(__file__), "song.mp3")

DIRECTION_KEYS = {
    pygame.K_LEFT:  Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_UP:    Direction.UP,
    pygame.K_DOWN:  Direction.DOWN,
    pygame.K_a:     Direction.LEFT,
    pygame.K_d:     Direction.RIGHT,
    pygame.K_w:     Direction.UP,
    pygame.K_s:     Direction.DOWN,
}

DIFFICULTY_KEYS = {
    pygame.K_1: 1,
    pygame.K_2: 2,
    pygame.K_3: 3,
    pygame.K_4: 4,
}


class GameController:
    """
    Owns the main loop.
    Glues Engine <-> View without them knowing about each other.
    Also owns the pygame mixer so music lifecycle stays in one place.
    """

    def __init__(self, difficulty: int = DEFAULT_DIFFICULTY, seed=None):
        pygame.init()
        pygame.mixer.init()
        self.screen     = pygame.display.set_mode((WIDTH, HEIGHT))
        pygame.display.set_caption("COMBO SNAKE")
        self.clock      = pygame.time.Clock()
        self.difficulty = difficulty
        self.engine     = GameEngine(EngineConfig.for_difficulty(difficulty, seed=seed))
        self.ticker     = FixedStepClock(self.engine.tick_interval_ms)
        self.view       = GameView(self.screen)
        self._music_ok  = self._load_music()
        self._wire_engine()

    # ── Public entry point ────────────────────────────────────────
    def run(self) -> None:
        """Start and run the game loop until the player quits."""
        self._play_music()
        while True:
            elapsed_ms = self.clock.tick(FPS)
            self._handle_events()
            for _ in range(self.ticker.advance(elapsed_ms)):
                self.engine.step()
            self.view.render(self.engine.snapshot(), self.difficulty)

    # ── Engine events ─────────────────────────────────────────────
    def _wire_engine(self) -> None:
        self.engine.subscribe(EngineEvent.STATE_CHANGE, self._on_state_change)
        self.engine.subscribe(EngineEvent.SPEED_CHANGE,
                              lambda change: self.ticker.set_interval(change.new_ms))
        self.engine.subscribe(EngineEvent.COMBO, self._on_combo)
        self.engine.subscribe(EngineEvent.SCORE, self._on_score)
        self.engine.subscribe(EngineEvent.GAME_OVER, self._on_game_over)

    def _on_state_change(self, previous: SessionState, current: SessionState) -> None:
        if current is SessionState.PLAYING:
            self.ticker.set_interval(self.engine.tick_interval_ms)
            self.ticker.reset()
            if previous is SessionState.PAUSED:
                self._resume_music()
        elif current is SessionState.PAUSED:
            self._pause_music()

    def _on_combo(self, event) -> None:
        if event.type is ComboEventType.COMPLETED:
            self.view.flash(f"COMBO!  +{event.total_points}", COMBO_COL)
        elif event.type is ComboEventType.BROKEN and event.progress == 0:
            self.view.flash("COMBO BROKEN", DEATH_COL)

    def _on_score(self, score: int, event) -> None:
        milestone = self.engine.ledger.check_milestone(SCORE_MILESTONES)
        if milestone is not None:
            logger.info("Milestone reached: %d", milestone)
            self.view.flash(f"{milestone} POINTS!", UI_COL)

    def _on_game_over(self, state) -> None:
        logger.info("Final result: %s", self.engine.score_submission())

    # ── Music helpers ─────────────────────────────────────────────
    def _load_music(self) -> bool:
        """Load song.mp3. Returns True on success, False on any failure."""
        if not os.path.isfile(_MUSIC_PATH):
            logger.warning("song.mp3 not found at '%s', running without music", _MUSIC_PATH)
            return False
        try:
            pygame.mixer.music.load(_MUSIC_PATH)
            pygame.mixer.music.set_volume(0.6)
            return True
        except pygame.error as exc:
            logger.warning("Could not load song.mp3: %s", exc)
            return False

    def _play_music(self) -> None:
        if self._music_ok:
            pygame.mixer.music.play(loops=-1)   # -1 = loop forever

    def _pause_music(self) -> None:
        if self._music_ok and pygame.mixer.music.get_busy():
            pygame.mixer.music.pause()

    def _resume_music(self) -> None:
        if self._music_ok:
            pygame.mixer.music.unpause()

    # ── Event dispatch ────────────────────────────────────────────
    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit()
            elif event.type == pygame.KEYDOWN:
                self._handle_keydown(event.key)

    def _handle_keydown(self, key: int) -> None:
        # Q quits from any state
        if key == pygame.K_q:
            self._quit()

        state = self.engine.state

        if state is SessionState.MENU:
            self._handle_menu_keys(key)
        elif state is SessionState.PLAYING:
            self._handle_playing_keys(key)
        elif state is SessionState.PAUSED:
            self._handle_paused_keys(key)
        elif state is SessionState.GAME_OVER:
            self._handle_over_keys(key)

    # ── Per-state key handlers ────────────────────────────────────
    def _handle_menu_keys(self, key: int) -> None:
        if key in (pygame.K_RETURN, pygame.K_SPACE):
            self.engine.start()
        self._handle_difficulty_keys(key)

    def _handle_playing_keys(self, key: int) -> None:
        if key in DIRECTION_KEYS:
            self.engine.request_direction(DIRECTION_KEYS[key])
        elif key == pygame.K_p:
            self.engine.pause()
        elif key == pygame.K_r:
            self.engine.restart()
        elif key == pygame.K_ESCAPE:
            self.engine.to_menu()

    def _handle_paused_keys(self, key: int) -> None:
        if key in (pygame.K_p, pygame.K_SPACE):
            self.engine.resume()
        elif key == pygame.K_r:
            self.engine.restart()
            self._resume_music()
        elif key == pygame.K_ESCAPE:
            self.engine.to_menu()
            self._resume_music()

    def _handle_over_keys(self, key: int) -> None:
        if key in (pygame.K_r, pygame.K_SPACE, pygame.K_RETURN):
            self.engine.restart()
        elif key == pygame.K_ESCAPE:
            self.engine.to_menu()
        self._handle_difficulty_keys(key)

    def _handle_difficulty_keys(self, key: int) -> None:
        if key in DIFFICULTY_KEYS:
            self.difficulty = DIFFICULTY_KEYS[key]
            self.engine.set_difficulty(self.difficulty)
            self.ticker.set_interval(self.engine.tick_interval_ms)

    # ── Utilities ─────────────────────────────────────────────────
    @staticmethod
    def _quit() -> None:
        pygame.mixer.music.stop()
        pygame.quit()
        sys.exit()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    GameController().run()
