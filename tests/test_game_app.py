"""
Headless tests for the pygame front end wiring.
"""

import pygame
import pytest

from conftest import FixedRandom, empty_board
from game_2048 import CROWN_COLOR, DARK_OVERLAY, LIGHT_OVERLAY, GameApp, crown_points, direction_for_key, log_level
from grid_engine import Direction, GridEngine
from game_settings import GameSettings
from skins import SkinCatalog


@pytest.fixture
def app(store, tmp_path):
    game_app = GameApp(store=store, catalog=SkinCatalog(str(tmp_path / "skins.json")))
    yield game_app
    pygame.quit()


def winning_engine(app):
    board = empty_board()
    board[0] = [1024, 1024, 0, 0]
    return GridEngine(board=board, rng=FixedRandom(), on_first_win=app._on_first_win)


def test_direction_for_key():
    assert direction_for_key(pygame.K_LEFT) is Direction.LEFT
    assert direction_for_key(pygame.K_w) is Direction.UP
    assert direction_for_key(pygame.K_SPACE) is None


class TestGameApp:
    def test_move_starts_animation_and_blocks_input(self, app):
        app.game = GridEngine(board=[[2, 2, 0, 0]] + [[0] * 4 for _ in range(3)], rng=FixedRandom())
        app._trigger_action("LEFT")
        assert app.player.is_running
        assert app.game.score == 4
        board = app.game.board

        app._trigger_action("RIGHT")
        assert app.game.board == board

    def test_first_win_is_persisted_and_shown(self, app, store):
        app.game = winning_engine(app)
        app._trigger_action("LEFT")
        assert store.total_wins() == 1
        assert app.settings.total_wins == 1

        app.current_time += 10_000
        app.player.update(app.current_time)
        assert app._overlay_visible()
        app._draw()
        assert "continue" in app.overlay_buttons

        app._handle_overlay_click(app.overlay_buttons["continue"].center)
        assert not app._overlay_visible()

    def test_best_score_is_saved(self, app, store):
        app.game = winning_engine(app)
        app._trigger_action("LEFT")
        assert store.load().best_score == 2048

    def test_skin_cycle_respects_unlocks(self, app, store):
        assert app.skin.name == "Classic"
        app._trigger_action("SKIN")
        assert app.skin.name == "Dark"
        app._trigger_action("SKIN")
        assert app.skin.name == "Classic"
        assert store.load().current_skin == "Classic"

    def test_speed_keys_change_duration(self, app, store):
        app._handle_key(pygame.K_PLUS)
        assert app.settings.animation_speed == 11
        assert store.load().animation_speed == 11
        app._handle_key(pygame.K_MINUS)
        app._handle_key(pygame.K_MINUS)
        assert app.player.duration_ms == 289

    def test_restart_clears_win_overlay(self, app):
        app.game = winning_engine(app)
        app._trigger_action("LEFT")
        app.win_dismissed = True
        app._trigger_action("RESTART")
        assert not app.game.won
        assert not app.win_dismissed
        assert app.game.score == 0


def pixel(app, x, y):
    return tuple(app.screen.get_at((int(x), int(y))))[:3]


class TestTileRendering:
    def test_royal_tile_has_gradient_and_crown(self, app):
        app.skin = app.catalog.get("Royal")
        rect = pygame.Rect(100, 100, 120, 120)
        app._draw_tile(2048, rect.x, rect.y, rect.width)

        assert pixel(app, rect.x + 10, rect.y + 10) != pixel(app, rect.x + 10, rect.bottom - 10)
        crown_bottom = max(y for _, y in crown_points(rect))
        assert pixel(app, rect.centerx, crown_bottom - 2) == CROWN_COLOR

    def test_classic_tile_is_flat_without_crown(self, app):
        rect = pygame.Rect(100, 100, 120, 120)
        app._draw_tile(2048, rect.x, rect.y, rect.width)

        flat = app.skin.tile_color(2048)
        assert pixel(app, rect.x + 10, rect.y + 10) == flat
        assert pixel(app, rect.x + 10, rect.bottom - 10) == flat
        crown_bottom = max(y for _, y in crown_points(rect))
        assert pixel(app, rect.centerx, crown_bottom - 2) == flat

    def test_royal_board_draws_while_animating(self, app):
        app.skin = app.catalog.get("Royal")
        app.game = GridEngine(board=[[512, 512, 0, 0]] + [[0] * 4 for _ in range(3)], rng=FixedRandom())
        app._trigger_action("LEFT")
        app.current_time += 50
        app._draw()


class TestThemeAndStartup:
    def test_dark_theme_darkens_overlay(self, app):
        assert app._overlay_colors()[0] == LIGHT_OVERLAY
        app._trigger_action("SKIN")
        assert app.settings.dark_theme
        assert app._overlay_colors()[0] == DARK_OVERLAY
        app.game = winning_engine(app)
        app._trigger_action("LEFT")
        app.current_time += 10_000
        app.player.update(app.current_time)
        app._draw()
        assert "continue" in app.overlay_buttons

    def test_unknown_saved_skin_is_normalised(self, store, tmp_path):
        store.save(GameSettings(current_skin="Neon"))
        game_app = GameApp(store=store, catalog=SkinCatalog(str(tmp_path / "skins.json")))
        try:
            assert game_app.skin.name == "Classic"
            assert game_app.settings.current_skin == "Classic"
        finally:
            pygame.quit()

    @pytest.mark.parametrize("name, expected", [
        ("debug", 10),
        ("INFO", 20),
        (None, 30),
        ("", 30),
        ("chatty", 30),
    ])
    def test_log_level_falls_back_to_warning(self, name, expected):
        assert log_level(name) == expected
