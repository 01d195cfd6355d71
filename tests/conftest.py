"""
Shared fixtures for the test suite.
"""

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from game_settings import SettingsStore


class FixedRandom:
    """Stand-in for random.Random: always picks the first empty cell."""

    def __init__(self, roll=0.5):
        self.roll = roll

    def choice(self, seq):
        return seq[0]

    def random(self):
        return self.roll


@pytest.fixture
def fixed_rng():
    return FixedRandom()


@pytest.fixture
def settings_path(tmp_path):
    return str(tmp_path / "settings.json")


@pytest.fixture
def store(settings_path):
    return SettingsStore(settings_path)


def empty_board(size=4):
    return [[0] * size for _ in range(size)]


def board_without_spawn(engine):
    """Engine board with the tile spawned by the last move removed."""
    board = engine.board
    for event in engine.last_events:
        if event.kind.name == "APPEAR":
            r, c = event.end
            board[r][c] = 0
    return board
