import logging
import os
import sys
from typing import Dict, List, Optional, Tuple

import pygame

from animation import AnimationPlayer, TileSprite, duration_for_speed
from game_settings import GameSettings, SettingsStore, clamp_speed
from grid_engine import DEFAULT_SIZE, Direction, GridEngine
from skins import Skin, SkinCatalog, blend

logger = logging.getLogger(__name__)

GRID_SIZE = DEFAULT_SIZE
WINDOW_WIDTH = 600
WINDOW_HEIGHT = 780
BOARD_MARGIN = 32
BOARD_TOP = 210
TILE_GAP = 12
BOARD_SIZE = WINDOW_WIDTH - 2 * BOARD_MARGIN
TILE_SIZE = (BOARD_SIZE - (GRID_SIZE + 1) * TILE_GAP) // GRID_SIZE
BUTTON_WIDTH = 170
BUTTON_HEIGHT = 58
BUTTON_GAP = 24
CONTROL_BUTTON_HEIGHT = 48
CONTROL_BUTTON_PADDING_X = 28
CONTROL_BUTTON_PADDING_Y = 12
CONTROL_BUTTON_GAP = 18
HEADER_CONTROL_BUTTONS = [
    ("Restart", "RESTART"),
    ("Skin", "SKIN"),
    ("Quit", "QUIT"),
]
GAIN_DISPLAY_MS = 1200
LOG_LEVEL_ENV_VAR = "GAME2048_LOG_LEVEL"
TEXT_COLOR = (119, 110, 101)
LIGHT_TEXT_COLOR = (249, 246, 242)
BUTTON_COLOR = (187, 173, 160)
PRIMARY_BUTTON_COLOR = (146, 123, 99)
HIGHLIGHT_COLOR = (205, 190, 170)
GAIN_COLOR = (197, 120, 30)
CROWN_COLOR = (255, 215, 0)
LIGHT_OVERLAY = (255, 255, 255, 200)
DARK_OVERLAY = (20, 20, 20, 210)

KEY_DIRECTIONS = {
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_UP: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_a: Direction.LEFT,
    pygame.K_d: Direction.RIGHT,
    pygame.K_w: Direction.UP,
    pygame.K_s: Direction.DOWN,
}


def direction_for_key(key: int) -> Optional[Direction]:
    return KEY_DIRECTIONS.get(key)


def crown_points(rect: pygame.Rect) -> List[Tuple[float, float]]:
    """Outline of the crown drawn at the top of high tiles."""
    half = rect.width * 0.18
    left = rect.centerx - half
    right = rect.centerx + half
    top = rect.top + rect.height * 0.06
    bottom = rect.top + rect.height * 0.22
    middle = (top + bottom) / 2
    return [
        (left, bottom),
        (left, top),
        (left + half / 2, middle),
        (rect.centerx, top),
        (right - half / 2, middle),
        (right, top),
        (right, bottom),
    ]


class GameApp:
    def __init__(self, store: Optional[SettingsStore] = None, catalog: Optional[SkinCatalog] = None) -> None:
        pygame.init()
        pygame.display.set_caption("2048")
        self.fullscreen = False
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        self.clock = pygame.time.Clock()
        self.font_large = pygame.font.SysFont("arial", 48, bold=True)
        self.font_medium = pygame.font.SysFont("arial", 28, bold=True)
        self.font_small = pygame.font.SysFont("arial", 20)
        self.font_tile_big = pygame.font.SysFont("arial", 36, bold=True)
        self.font_tile_medium = pygame.font.SysFont("arial", 30, bold=True)
        self.font_tile_small = pygame.font.SysFont("arial", 24, bold=True)
        self.font_tile_tiny = pygame.font.SysFont("arial", 20, bold=True)

        self.store = store or SettingsStore()
        self.catalog = catalog or SkinCatalog()
        self.settings: GameSettings = self.store.load()
        if not self.catalog.is_unlocked(self.settings.current_skin, self.settings.total_wins):
            self.settings.current_skin = self.catalog.next_unlocked(self.settings.current_skin, self.settings.total_wins)
        self.skin: Skin = self.catalog.get(self.settings.current_skin)
        self.settings.current_skin = self.skin.name

        self.game = GridEngine(size=GRID_SIZE, on_first_win=self._on_first_win)
        self.player = AnimationPlayer(duration_for_speed(self.settings.animation_speed))
        self.win_dismissed = False
        self.overlay_buttons: Dict[str, pygame.Rect] = {}
        self.header_buttons: Dict[str, pygame.Rect] = {}
        self.last_gain = 0
        self.last_gain_time = 0
        self.current_time = 0

    def run(self) -> None:
        self.player.start(self.game.last_events, pygame.time.get_ticks())
        while True:
            self.clock.tick(60)
            self.current_time = pygame.time.get_ticks()
            self._handle_events()
            self.player.update(self.current_time)
            self._draw()
            pygame.display.flip()

    def _on_first_win(self) -> None:
        self.settings.total_wins = self.store.record_win()

    def _quit(self) -> None:
        self.store.save(self.settings)
        pygame.quit()
        sys.exit()

    def _overlay_visible(self) -> bool:
        if self.player.is_running:
            return False
        return self.game.game_over or (self.game.won and not self.win_dismissed)

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit()
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self._overlay_visible():
                    self._handle_overlay_click(event.pos)
                    continue
                self._handle_header_click(event.pos)
            if event.type == pygame.KEYDOWN:
                self._handle_key(event.key)

    def _handle_key(self, key: int) -> None:
        if key in (pygame.K_ESCAPE, pygame.K_q):
            self._quit()
        elif key == pygame.K_r:
            self._trigger_action("RESTART")
        elif key == pygame.K_k:
            self._trigger_action("SKIN")
        elif key == pygame.K_F11:
            self._toggle_fullscreen()
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            self._change_speed(1)
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            self._change_speed(-1)
        else:
            direction = direction_for_key(key)
            if direction is not None:
                self._trigger_action(direction.name)

    def _trigger_action(self, action: str) -> None:
        if action in Direction.__members__:
            # Input is gated while a move plays back or an overlay is shown.
            if self.player.is_running or self._overlay_visible():
                return
            if self.game.move(action):
                self._record_gain(self.game.last_score_gain)
                self.player.start(self.game.last_events, self.current_time)
        elif action == "RESTART":
            self._restart_game()
        elif action == "SKIN":
            self._cycle_skin()
        elif action == "QUIT":
            self._quit()

    def _restart_game(self) -> None:
        self.game.restart()
        self.win_dismissed = False
        self.overlay_buttons = {}
        self.player.start(self.game.last_events, self.current_time)

    def _record_gain(self, gain: int) -> None:
        if gain <= 0:
            return
        self.last_gain = gain
        self.last_gain_time = self.current_time
        if self.game.score > self.settings.best_score:
            self.settings.best_score = self.game.score
            self.store.record_score(self.game.score)

    def _cycle_skin(self) -> None:
        name = self.catalog.next_unlocked(self.settings.current_skin, self.settings.total_wins)
        self.settings.current_skin = name
        self.settings.dark_theme = name == "Dark"
        self.skin = self.catalog.get(name)
        self.store.save(self.settings)
        logger.info("Switched skin to %s", name)

    def _change_speed(self, delta: int) -> None:
        self.settings.animation_speed = clamp_speed(self.settings.animation_speed + delta)
        self.player.duration_ms = duration_for_speed(self.settings.animation_speed)
        self.store.save(self.settings)

    def _toggle_fullscreen(self) -> None:
        self.fullscreen = not self.fullscreen
        flags = pygame.FULLSCREEN | pygame.SCALED if self.fullscreen else 0
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT), flags)

    def _handle_overlay_click(self, pos: Tuple[int, int]) -> None:
        for key, rect in self.overlay_buttons.items():
            if not rect.collidepoint(pos):
                continue
            if key == "replay":
                self._restart_game()
            elif key == "continue":
                self.win_dismissed = True
                self.overlay_buttons = {}
            elif key == "exit":
                self._quit()
            return

    def _handle_header_click(self, pos: Tuple[int, int]) -> None:
        for action, rect in self.header_buttons.items():
            if rect.collidepoint(pos):
                self._trigger_action(action)
                return

    def _draw(self) -> None:
        self.screen.fill(self.skin.background_rgb)
        self._draw_header()
        self._draw_board()
        if self._overlay_visible():
            self._draw_overlay()
        else:
            self.overlay_buttons = {}

    def _draw_header(self) -> None:
        title_surface = self.font_large.render("2048", True, self.skin.text_rgb)
        title_rect = title_surface.get_rect(topleft=(BOARD_MARGIN, 36))
        self.screen.blit(title_surface, title_rect)

        wins_surface = self.font_small.render(f"Wins: {self.settings.total_wins}", True, self.skin.text_rgb)
        self.screen.blit(wins_surface, wins_surface.get_rect(topleft=(BOARD_MARGIN, title_rect.bottom + 4)))

        box_width = 152
        box_height = 68
        box_spacing = 12
        best_rect = pygame.Rect(WINDOW_WIDTH - BOARD_MARGIN - box_width, 36, box_width, box_height)
        score_rect = pygame.Rect(best_rect.x - box_spacing - box_width, 36, box_width, box_height)
        self._draw_score_box(score_rect, "SCORE", self.game.score, highlight=self._gain_active())
        self._draw_score_box(best_rect, "BEST", max(self.settings.best_score, self.game.score))
        self._draw_gain_indicator(score_rect)

        self._draw_header_buttons(best_rect.bottom + 20)

    def _draw_board(self) -> None:
        pygame.draw.rect(
            self.screen,
            self.skin.grid_rgb,
            (BOARD_MARGIN, BOARD_TOP, BOARD_SIZE, BOARD_SIZE),
            border_radius=8,
        )
        covered = self.player.covered_cells() if self.player.is_running else set()
        board = self.game.board
        for r in range(GRID_SIZE):
            for c in range(GRID_SIZE):
                x, y = self._cell_position(r, c)
                self._draw_tile(0, x, y, TILE_SIZE)
                value = board[r][c]
                if value and (r, c) not in covered:
                    self._draw_tile(value, x, y, TILE_SIZE)

        if self.player.is_running:
            for sprite in self.player.sprites(self.current_time):
                self._draw_sprite(sprite)

    def _draw_sprite(self, sprite: TileSprite) -> None:
        x, y = self._cell_position(sprite.row, sprite.col)
        size = TILE_SIZE * sprite.scale
        offset = (TILE_SIZE - size) / 2
        self._draw_tile(sprite.value, x + offset, y + offset, size)

    def _draw_tile(self, value: int, x: float, y: float, size: float) -> None:
        rect = pygame.Rect(x, y, size, size)
        top, bottom = self.skin.gradient_colors(value)
        if top == bottom:
            pygame.draw.rect(self.screen, top, rect, border_radius=6)
        else:
            self._draw_gradient(rect, top, bottom)
        if not value:
            return
        if self.skin.border_width > 1 and value >= 16:
            pygame.draw.rect(self.screen, self.skin.border_rgb, rect, self.skin.border_width, border_radius=6)
        if self.skin.has_crown(value):
            pygame.draw.polygon(self.screen, CROWN_COLOR, crown_points(rect))
        text = self._tile_font(value).render(str(value), True, self.skin.text_color_for_tile(value))
        self.screen.blit(text, text.get_rect(center=rect.center))

    def _draw_gradient(self, rect: pygame.Rect, top: Tuple[int, int, int], bottom: Tuple[int, int, int]) -> None:
        if rect.width <= 0 or rect.height <= 0:
            return
        tile = pygame.Surface(rect.size, pygame.SRCALPHA)
        last = max(1, rect.height - 1)
        for row in range(rect.height):
            pygame.draw.line(tile, blend(top, bottom, row / last), (0, row), (rect.width - 1, row))
        # Clip the square fill to the rounded tile outline.
        mask = pygame.Surface(rect.size, pygame.SRCALPHA)
        pygame.draw.rect(mask, (255, 255, 255, 255), mask.get_rect(), border_radius=6)
        tile.blit(mask, (0, 0), special_flags=pygame.BLEND_RGBA_MIN)
        self.screen.blit(tile, rect.topleft)

    def _tile_font(self, value: int) -> pygame.font.Font:
        if value < 100:
            return self.font_tile_big
        if value < 1000:
            return self.font_tile_medium
        if value < 10000:
            return self.font_tile_small
        return self.font_tile_tiny

    def _overlay_colors(self) -> Tuple[Tuple[int, int, int, int], Tuple[int, int, int]]:
        if self.settings.dark_theme:
            return DARK_OVERLAY, LIGHT_TEXT_COLOR
        return LIGHT_OVERLAY, TEXT_COLOR

    def _draw_overlay(self) -> None:
        overlay = pygame.Surface((WINDOW_WIDTH, WINDOW_HEIGHT), pygame.SRCALPHA)
        fill_color, text_color = self._overlay_colors()
        overlay.fill(fill_color)
        self.screen.blit(overlay, (0, 0))

        if self.game.game_over:
            message = "Game Over"
            buttons = [("Replay", "replay"), ("Exit", "exit")]
        else:
            message = f"You made {self.game.win_tile}!"
            buttons = [("Continue", "continue"), ("Replay", "replay")]

        message_surface = self.font_large.render(message, True, text_color)
        message_rect = message_surface.get_rect(center=(WINDOW_WIDTH / 2, WINDOW_HEIGHT / 2 - 80))
        self.screen.blit(message_surface, message_rect)

        detail_surface = self.font_medium.render(f"Score: {self.game.score}", True, text_color)
        detail_rect = detail_surface.get_rect(center=(WINDOW_WIDTH / 2, message_rect.bottom + 30))
        self.screen.blit(detail_surface, detail_rect)

        self._draw_overlay_buttons(detail_rect.bottom + 30, buttons)

    def _cell_position(self, row: float, col: float) -> Tuple[float, float]:
        x = BOARD_MARGIN + TILE_GAP + col * (TILE_SIZE + TILE_GAP)
        y = BOARD_TOP + TILE_GAP + row * (TILE_SIZE + TILE_GAP)
        return float(x), float(y)

    def _draw_score_box(self, rect: pygame.Rect, label: str, value: int, *, highlight: bool = False) -> None:
        box_color = HIGHLIGHT_COLOR if highlight else self.skin.grid_rgb
        pygame.draw.rect(self.screen, box_color, rect, border_radius=8)
        label_surface = self.font_small.render(label, True, LIGHT_TEXT_COLOR)
        label_rect = label_surface.get_rect(center=(rect.centerx, rect.top + label_surface.get_height() / 2 + 6))
        value_surface = self.font_medium.render(str(value), True, LIGHT_TEXT_COLOR)
        value_rect = value_surface.get_rect(center=(rect.centerx, rect.bottom - value_surface.get_height() / 2 - 6))
        self.screen.blit(label_surface, label_rect)
        self.screen.blit(value_surface, value_rect)

    def _gain_active(self) -> bool:
        if self.last_gain <= 0:
            return False
        if self.current_time - self.last_gain_time > GAIN_DISPLAY_MS:
            self.last_gain = 0
            return False
        return True

    def _draw_gain_indicator(self, anchor: pygame.Rect) -> None:
        if not self._gain_active():
            return
        gain_surface = self.font_small.render(f"+{self.last_gain}", True, GAIN_COLOR)
        self.screen.blit(gain_surface, gain_surface.get_rect(midtop=(anchor.centerx, anchor.bottom + 6)))

    def _draw_header_buttons(self, top_y: float) -> None:
        self.header_buttons = {}
        x = BOARD_MARGIN
        for label, action in HEADER_CONTROL_BUTTONS:
            if action == "SKIN":
                label = f"Skin: {self.skin.name}"
            text_surface = self.font_medium.render(label, True, self.skin.text_rgb)
            width = text_surface.get_width() + CONTROL_BUTTON_PADDING_X * 2
            height = max(CONTROL_BUTTON_HEIGHT, text_surface.get_height() + CONTROL_BUTTON_PADDING_Y * 2)
            rect = pygame.Rect(x, top_y, width, height)
            pygame.draw.rect(self.screen, self.skin.grid_rgb, rect, border_radius=10)
            self.screen.blit(text_surface, text_surface.get_rect(center=rect.center))
            self.header_buttons[action] = rect
            x += width + CONTROL_BUTTON_GAP

    def _draw_overlay_buttons(self, top_y: float, buttons: List[Tuple[str, str]]) -> None:
        self.overlay_buttons = {}
        total_width = BUTTON_WIDTH * len(buttons) + BUTTON_GAP * (len(buttons) - 1)
        start_x = WINDOW_WIDTH / 2 - total_width / 2
        for idx, (text, key) in enumerate(buttons):
            rect = pygame.Rect(start_x + idx * (BUTTON_WIDTH + BUTTON_GAP), top_y, BUTTON_WIDTH, BUTTON_HEIGHT)
            primary = idx == 0
            color = PRIMARY_BUTTON_COLOR if primary else BUTTON_COLOR
            text_color = LIGHT_TEXT_COLOR if primary else TEXT_COLOR
            pygame.draw.rect(self.screen, color, rect, border_radius=10)
            button_text = self.font_medium.render(text, True, text_color)
            self.screen.blit(button_text, button_text.get_rect(center=rect.center))
            self.overlay_buttons[key] = rect


def log_level(name: Optional[str]) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def main() -> None:
    logging.basicConfig(
        level=log_level(os.environ.get(LOG_LEVEL_ENV_VAR)),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    app = GameApp()
    app.run()


if __name__ == "__main__":
    main()
