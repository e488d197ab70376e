"""
view.py — View layer.

Draws a frame from an engine Snapshot and nothing else. It never touches
the engine, so whatever it reads cannot change mid-frame.

  - Pre-rendered grid surface (drawn once, blitted every frame)
  - CRT scanline overlay and edge vignette
  - Numbered, colour-coded food with a pulsing glow
  - Rounded snake segments with gradient tail fade
  - Combo track in the HUD: five slots lit in eating order
  - Smooth score rack-up animation and best-score tracking
  - Short flash messages (combo completed, combo broken, milestones)
  - Menu / paused / game-over overlays

Public API:
    GameView(screen)                     — bind to a pygame surface
    view.render(snapshot, difficulty)    — draw the current frame
    view.flash(text, color)              — show a short banner
"""

import math
import pygame

from .config import (
    WIDTH, HEIGHT, PANEL_H, GAME_W, GAME_H,
    OFFSET_X, OFFSET_Y, CELL, COLS, ROWS,
    BG, GRID_COL, SNAKE_COL, SNAKE_DIM, DEATH_COL, COMBO_COL, UI_COL, BLACK,
    PANEL_BG, BORDER_COL, FOOD_COLORS, FOOD_SLOTS, DIFFICULTIES,
)
from .engine import Snapshot
from .session import SessionState

FLASH_FRAMES = 75

DIFF_COLORS = {1: (0, 200, 100), 2: (255, 200, 0), 3: (255, 120, 0), 4: (255, 51, 102)}


# ─────────────────────── colour helpers ──────────────────────────
def _lerp_color(c1: tuple, c2: tuple, t: float) -> tuple:
    t = max(0.0, min(1.0, t))
    return tuple(int(c1[i] + (c2[i] - c1[i]) * t) for i in range(3))


def _with_alpha(color: tuple, alpha: int) -> tuple:
    return (*color[:3], max(0, min(255, alpha)))


def _brighten(color: tuple, factor: float) -> tuple:
    return tuple(min(255, int(c * factor)) for c in color[:3])


# ─────────────────────────── GameView ────────────────────────────
class GameView:
    """Renders the complete game frame from an engine snapshot."""

    # ── Construction ─────────────────────────────────────────────
    def __init__(self, screen: pygame.Surface):
        self.screen = screen
        self._init_fonts()
        self._build_static_surfaces()

        self._disp_score: float = 0.0
        self._high_score: int = 0
        self._anim_tick: int = 0
        self._flash_text: str = ""
        self._flash_color: tuple = COMBO_COL
        self._flash_left: int = 0

    def flash(self, text: str, color: tuple = COMBO_COL) -> None:
        self._flash_text, self._flash_color, self._flash_left = text, color, FLASH_FRAMES

    # ── Main entry ───────────────────────────────────────────────
    def render(self, snap: Snapshot, difficulty: int) -> None:
        self._anim_tick += 1
        self._disp_score += (snap.score - self._disp_score) * 0.25
        if snap.score > self._high_score:
            self._high_score = snap.score

        # ── Base layers
        self.screen.fill(BG)
        self.screen.blit(self._grid_surf, (OFFSET_X, OFFSET_Y))

        # ── Game content
        for food in snap.foods:
            self._draw_food(food, snap.combo_state.expected_next)
        if snap.session_state is not SessionState.MENU:
            dead = snap.session_state is SessionState.GAME_OVER
            self._draw_snake_glow(snap, dead)
            self._draw_snake(snap, dead)
        self._draw_flash()

        # ── CRT scanlines (over everything)
        self.screen.blit(self._scanline_surf, (0, 0))

        # ── Chrome
        self._draw_border()
        self._draw_panel(snap, difficulty)

        # ── State overlays
        if snap.session_state is SessionState.MENU:
            self._draw_menu_overlay(difficulty)
        elif snap.session_state is SessionState.PAUSED:
            self._draw_paused_overlay()
        elif snap.session_state is SessionState.GAME_OVER:
            self._draw_game_over_overlay(snap, difficulty)

        pygame.display.flip()

    # ── Static surface pre-builds ─────────────────────────────────
    def _build_static_surfaces(self) -> None:
        self._grid_surf = pygame.Surface((GAME_W, GAME_H), pygame.SRCALPHA)
        for x in range(COLS + 1):
            pygame.draw.line(self._grid_surf, (*GRID_COL, 160),
                             (x * CELL, 0), (x * CELL, GAME_H))
        for y in range(ROWS + 1):
            pygame.draw.line(self._grid_surf, (*GRID_COL, 160),
                             (0, y * CELL), (GAME_W, y * CELL))

        self._scanline_surf = pygame.Surface((WIDTH, HEIGHT), pygame.SRCALPHA)
        for y in range(0, HEIGHT, 2):
            pygame.draw.line(self._scanline_surf, (0, 0, 0, 18), (0, y), (WIDTH, y))

        edge = pygame.Surface((GAME_W, GAME_H), pygame.SRCALPHA)
        for i in range(28):
            a = int(55 * (1 - i / 28) ** 1.8)
            pygame.draw.rect(edge, (0, 0, 0, a),
                             (i, i, GAME_W - 2 * i, GAME_H - 2 * i), 1)
        self._edge_surf = edge

    # ── Food ─────────────────────────────────────────────────────
    def _draw_food(self, food, expected_next: int) -> None:
        # The number the combo wants next pulses harder.
        wanted = food.number == expected_next
        pulse = 0.80 + (0.20 if wanted else 0.08) * math.sin(self._anim_tick * 0.12)
        r = max(2, int((CELL / 2) * pulse))
        x = OFFSET_X + food.position.x + CELL // 2
        y = OFFSET_Y + food.position.y + CELL // 2

        glow_r = r + (10 if wanted else 5)
        glow = pygame.Surface((glow_r * 2, glow_r * 2), pygame.SRCALPHA)
        for gr in range(glow_r, r, -1):
            a = int(80 * (1 - (gr - r) / (glow_r - r)) * pulse)
            pygame.draw.circle(glow, _with_alpha(food.color, a), (glow_r, glow_r), gr)
        self.screen.blit(glow, (x - glow_r, y - glow_r))

        pygame.draw.circle(self.screen, food.color, (x, y), r)
        label = self.font_small.render(str(food.number), True, BLACK)
        self.screen.blit(label, label.get_rect(center=(x, y + 1)))

    # ── Snake glow pass ───────────────────────────────────────────
    def _draw_snake_glow(self, snap: Snapshot, dead: bool) -> None:
        """Soft ambient glow around the snake head, drawn first (additive)."""
        if not snap.snake or dead:
            return
        head = snap.snake[0]
        cx = OFFSET_X + head.x + CELL // 2
        cy = OFFSET_Y + head.y + CELL // 2
        glow_size = 26
        glow = pygame.Surface((glow_size * 2, glow_size * 2), pygame.SRCALPHA)
        for gr in range(glow_size, 0, -2):
            a = int(28 * (gr / glow_size) ** 0.6)
            pygame.draw.circle(glow, _with_alpha(SNAKE_COL, a),
                               (glow_size, glow_size), gr)
        self.screen.blit(glow, (cx - glow_size, cy - glow_size),
                         special_flags=pygame.BLEND_RGBA_ADD)

    # ── Snake body ───────────────────────────────────────────────
    def _draw_snake(self, snap: Snapshot, dead: bool) -> None:
        if not snap.snake:
            return
        bright = DEATH_COL if dead else SNAKE_COL
        dim = _lerp_color(DEATH_COL, BLACK, 0.45) if dead else SNAKE_DIM
        length = len(snap.snake)

        for i, seg in enumerate(snap.snake):
            t = 1.0 - (i / max(length - 1, 1)) * 0.72
            color = _lerp_color(dim, bright, t)

            shrink = 0 if i == 0 else min(3, 1 + i // max(1, length // 4))
            rect = pygame.Rect(
                OFFSET_X + seg.x + shrink,
                OFFSET_Y + seg.y + shrink,
                CELL - shrink * 2,
                CELL - shrink * 2,
            )
            if rect.width <= 0 or rect.height <= 0:
                continue

            radius = max(1, rect.width // 2 - 1) if i == 0 else max(1, rect.width // 4)
            pygame.draw.rect(self.screen, color, rect, border_radius=radius)

            if i == 0:
                hi = pygame.Rect(rect.x + 2, rect.y + 2, max(1, rect.w - 4), max(2, rect.h // 3))
                pygame.draw.rect(self.screen, _brighten(color, 1.6), hi, border_radius=2)

        self._draw_eyes(snap)

    def _draw_eyes(self, snap: Snapshot) -> None:
        head = snap.snake[0]
        cx = OFFSET_X + head.x + CELL // 2
        cy = OFFSET_Y + head.y + CELL // 2
        dx, dy = snap.direction.x, snap.direction.y
        px, py = -dy, dx  # perpendicular

        for sign in (+1, -1):
            ex = int(cx + dx * 3 + sign * px * 2)
            ey = int(cy + dy * 3 + sign * py * 2)
            pygame.draw.rect(self.screen, (220, 220, 220), (ex - 1, ey - 1, 3, 3))
            pygame.draw.rect(self.screen, BLACK,           (ex,     ey,     1, 1))

    # ── Flash banner ─────────────────────────────────────────────
    def _draw_flash(self) -> None:
        if self._flash_left <= 0:
            return
        self._flash_left -= 1
        alpha = int(255 * min(1.0, self._flash_left / (FLASH_FRAMES / 3)))
        surf = self.font_med.render(self._flash_text, True, self._flash_color)
        surf.set_alpha(alpha)
        rise = (FLASH_FRAMES - self._flash_left) // 5
        self.screen.blit(surf, surf.get_rect(center=(WIDTH // 2, OFFSET_Y + 30 - rise)))

    # ── Border & corner accents ───────────────────────────────────
    def _draw_border(self) -> None:
        ox, oy = OFFSET_X, OFFSET_Y
        self.screen.blit(self._edge_surf, (ox, oy))
        pygame.draw.rect(self.screen, BORDER_COL,
                         (ox - 1, oy - 1, GAME_W + 2, GAME_H + 2), 1)
        size = 14
        for pts in [
            [(ox - 1, oy + size),          (ox - 1, oy - 1),          (ox + size, oy - 1)],
            [(ox - 1, oy + GAME_H - size), (ox - 1, oy + GAME_H),     (ox + size, oy + GAME_H)],
            [(ox + GAME_W - size, oy - 1), (ox + GAME_W, oy - 1),     (ox + GAME_W, oy + size)],
            [(ox + GAME_W - size, oy + GAME_H), (ox + GAME_W, oy + GAME_H), (ox + GAME_W, oy + GAME_H - size)],
        ]:
            pygame.draw.lines(self.screen, SNAKE_COL, False, pts, 2)

    # ── HUD Panel ─────────────────────────────────────────────────
    def _draw_panel(self, snap: Snapshot, difficulty: int) -> None:
        pygame.draw.rect(self.screen, PANEL_BG, (0, 0, WIDTH, PANEL_H))
        pygame.draw.line(self.screen, BORDER_COL,
                         (0, PANEL_H - 1), (WIDTH, PANEL_H - 1), 1)

        # Score (left)
        self.screen.blit(self.font_small.render("SCORE", True, SNAKE_COL), (16, 6))
        self.screen.blit(
            self.font_big.render(str(int(round(self._disp_score))), True, SNAKE_COL),
            (16, 24),
        )

        # Centre: combo track
        self._draw_combo_track(WIDTH // 2, 10, snap)
        combos = self.font_tiny.render(
            f"COMBOS {snap.combo_state.total_combos}", True, COMBO_COL)
        self.screen.blit(combos, combos.get_rect(center=(WIDTH // 2, 44)))

        # Right: difficulty + speed
        self._draw_difficulty_pips(WIDTH - 60, 8, difficulty)
        diff = self.font_small.render(DIFFICULTIES[difficulty]["label"], True, DIFF_COLORS[difficulty])
        self.screen.blit(diff, diff.get_rect(center=(WIDTH - 60, 26)))
        speed = self.font_tiny.render(
            f"SPD {snap.speed_level}  {snap.tick_interval_ms}ms", True, UI_COL)
        self.screen.blit(speed, speed.get_rect(center=(WIDTH - 60, 44)))

        if snap.micro_combo > 1:
            chain = self.font_small.render(f"x{snap.micro_combo}", True, COMBO_COL)
            self.screen.blit(chain, (110, 30))

        if self._high_score > 0:
            hs = self.font_tiny.render(f"BEST {self._high_score}",
                                       True, _lerp_color(UI_COL, COMBO_COL, 0.35))
            self.screen.blit(hs, hs.get_rect(bottomleft=(110, 20)))

    def _draw_combo_track(self, cx: int, y: int, snap: Snapshot) -> None:
        """Five numbered slots; lit ones are the part of 1-5 already eaten."""
        spacing = 26
        sx = cx - ((FOOD_SLOTS - 1) * spacing) // 2
        done = set(snap.combo_state.current_sequence)
        for n in range(1, FOOD_SLOTS + 1):
            px = sx + (n - 1) * spacing
            rect = pygame.Rect(px - 10, y, 20, 20)
            if n in done:
                pygame.draw.rect(self.screen, FOOD_COLORS[n], rect, border_radius=4)
                color = BLACK
            else:
                outline = FOOD_COLORS[n] if n == snap.combo_state.expected_next else _lerp_color(UI_COL, BG, 0.4)
                pygame.draw.rect(self.screen, outline, rect, 1, border_radius=4)
                color = outline
            label = self.font_small.render(str(n), True, color)
            self.screen.blit(label, label.get_rect(center=rect.center))

    def _draw_difficulty_pips(self, cx: int, y: int, active: int) -> None:
        """Four small circular pips representing 1–4 difficulty."""
        spacing = 12
        n = len(DIFFICULTIES)
        sx = cx - ((n - 1) * spacing) // 2
        for i in range(1, n + 1):
            px = sx + (i - 1) * spacing
            is_active = (i == active)
            r = 4 if is_active else 2
            c = DIFF_COLORS[i] if is_active else _lerp_color(UI_COL, BG, 0.3)
            if is_active:
                pygame.draw.circle(self.screen, _with_alpha(c, 55), (px, y + 4), r + 4)
            pygame.draw.circle(self.screen, c, (px, y + 4), r)

    # ── Overlay infrastructure ────────────────────────────────────
    def _draw_overlay_base(self) -> None:
        surf = pygame.Surface((GAME_W, GAME_H), pygame.SRCALPHA)
        surf.fill((5, 5, 12, 215))
        self.screen.blit(surf, (OFFSET_X, OFFSET_Y))
        pygame.draw.rect(self.screen, _lerp_color(BG, UI_COL, 0.12),
                         (OFFSET_X + 8, OFFSET_Y + 8, GAME_W - 16, GAME_H - 16), 1)

    def _draw_animated_title(self, title: str, color: tuple,
                             cy: int, font: pygame.font.Font) -> int:
        pulse = 0.82 + 0.18 * math.sin(self._anim_tick * 0.05)
        surf = font.render(title, True, _brighten(color, pulse))
        gw, gh = surf.get_width() + 50, surf.get_height() + 16
        glow = pygame.Surface((gw, gh), pygame.SRCALPHA)
        glow.fill(_with_alpha(color, int(35 * pulse)))
        self.screen.blit(glow, (WIDTH // 2 - gw // 2, cy - 8))
        self.screen.blit(surf, surf.get_rect(center=(WIDTH // 2, cy + surf.get_height() // 2)))
        return cy + surf.get_height() + 14

    def _draw_text_line(self, text: str, color: tuple,
                        cy: int, font: pygame.font.Font) -> int:
        if not text:
            return cy + 10
        surf = font.render(text, True, color)
        self.screen.blit(surf, surf.get_rect(center=(WIDTH // 2, cy)))
        return cy + surf.get_height() + 8

    def _draw_button(self, label: str, color: tuple, cy: int) -> int:
        btn_w = max(260, self.font_small.size(label)[0] + 40)
        btn_h = 38
        bx = WIDTH // 2 - btn_w // 2
        bg = pygame.Surface((btn_w, btn_h), pygame.SRCALPHA)
        bg.fill(_with_alpha(color, 22))
        self.screen.blit(bg, (bx, cy))
        pygame.draw.rect(self.screen, color, (bx, cy, btn_w, btn_h), 2, border_radius=4)
        txt = self.font_small.render(label, True, color)
        self.screen.blit(txt, txt.get_rect(center=(WIDTH // 2, cy + btn_h // 2)))
        return cy + btn_h + 10

    def _draw_controls_hint(self, cy: int) -> None:
        hints = [("ARROWS", "MOVE"), ("P", "PAUSE"), ("R", "RESTART"), ("ESC", "MENU"), ("1-4", "DIFF")]
        slot = 100
        sx = WIDTH // 2 - len(hints) * slot // 2
        for i, (key, action) in enumerate(hints):
            x = sx + i * slot + slot // 2
            k_surf = self.font_tiny.render(key,    True, (200, 200, 255))
            a_surf = self.font_tiny.render(action, True, UI_COL)
            kw = k_surf.get_width() + 12
            kh = k_surf.get_height() + 4
            pygame.draw.rect(self.screen, (28, 28, 48),
                             (x - kw // 2, cy, kw, kh), border_radius=3)
            pygame.draw.rect(self.screen, (55, 55, 88),
                             (x - kw // 2, cy, kw, kh), 1, border_radius=3)
            self.screen.blit(k_surf, k_surf.get_rect(center=(x, cy + kh // 2)))
            self.screen.blit(a_surf, a_surf.get_rect(center=(x, cy + kh + 10)))

    # ── State overlays ────────────────────────────────────────────
    def _draw_menu_overlay(self, difficulty: int) -> None:
        self._draw_overlay_base()
        cy = OFFSET_Y + 28

        cy = self._draw_animated_title("COMBO SNAKE", SNAKE_COL, cy, self.font_title)
        cy += 4
        cy = self._draw_text_line("EAT  1 → 2 → 3 → 4 → 5  FOR A COMBO", COMBO_COL, cy, self.font_med)
        cy += 14

        cy = self._draw_text_line(
            f"◄   {DIFFICULTIES[difficulty]['label']}   ►",
            DIFF_COLORS[difficulty], cy, self.font_med,
        )
        cy = self._draw_text_line("PRESS  1  2  3  4  TO CHANGE", UI_COL, cy, self.font_tiny)
        cy += 18
        cy = self._draw_button("ENTER — START GAME", SNAKE_COL, cy)
        cy += 6
        self._draw_controls_hint(cy)

    def _draw_paused_overlay(self) -> None:
        self._draw_overlay_base()
        cy = OFFSET_Y + GAME_H // 2 - 36
        cy = self._draw_animated_title("PAUSED", COMBO_COL, cy, self.font_title)
        cy += 6
        self._draw_text_line("PRESS  P  TO RESUME", UI_COL, cy, self.font_med)

    def _draw_game_over_overlay(self, snap: Snapshot, difficulty: int) -> None:
        self._draw_overlay_base()
        over = snap.game_over
        sub = {
            "boundary": "YOU HIT THE WALL",
            "self":     "YOU BIT YOURSELF",
        }.get(over.cause, "GAME ENDED")

        cy = OFFSET_Y + 26
        cy = self._draw_animated_title("GAME OVER", DEATH_COL, cy, self.font_title)
        cy += 2
        cy = self._draw_text_line(sub, _lerp_color(UI_COL, DEATH_COL, 0.5), cy, self.font_med)
        cy += 10

        cy = self._draw_text_line(f"SCORE  {over.final_score}", SNAKE_COL, cy, self.font_big)
        stats = over.game_stats
        if stats is not None:
            cy = self._draw_text_line(
                f"FOOD {stats.food_consumed}   LENGTH {stats.max_snake_length}   "
                f"TIME {stats.duration}s   COMBOS {snap.combo_state.total_combos}",
                UI_COL, cy, self.font_tiny,
            )
        cy += 6

        if over.final_score > 0 and over.final_score >= self._high_score:
            cy = self._draw_text_line("★  NEW HIGH SCORE  ★", COMBO_COL, cy, self.font_small)
        else:
            cy = self._draw_text_line(f"BEST: {self._high_score}", UI_COL, cy, self.font_tiny)
        cy += 4

        cy = self._draw_text_line(
            f"DIFFICULTY: {DIFFICULTIES[difficulty]['label']}   |   PRESS 1-4 TO CHANGE",
            UI_COL, cy, self.font_tiny,
        )
        cy += 10
        self._draw_button("R / ENTER — PLAY AGAIN", DEATH_COL, cy)

    # ── Font init ─────────────────────────────────────────────────
    def _init_fonts(self) -> None:
        specs = [
            ("font_title", "courier", 42, True),
            ("font_big",   "courier", 26, True),
            ("font_med",   "courier", 17, False),
            ("font_small", "courier", 13, True),
            ("font_tiny",  "courier", 11, False),
        ]
        for attr, name, size, bold in specs:
            try:
                setattr(self, attr, pygame.font.SysFont(name, size, bold=bold))
            except (pygame.error, OSError):
                setattr(self, attr, pygame.font.SysFont(None, size))
