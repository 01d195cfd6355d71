"""
Tests for move transcript playback.
"""

import pytest

from animation import AnimationPlayer, duration_for_speed, ease_out
from grid_engine import EventKind, MoveEvent

SLIDE = MoveEvent(EventKind.SLIDE, (0, 3), (0, 1), 2)
MERGE = MoveEvent(EventKind.MERGE, (0, 2), (0, 0), 4)
APPEAR = MoveEvent(EventKind.APPEAR, (3, 3), (3, 3), 2)


def test_duration_scales_with_speed():
    assert duration_for_speed(10) == 260
    assert duration_for_speed(20) == 130
    assert duration_for_speed(1) == 2600
    assert duration_for_speed(100) == duration_for_speed(20)


def test_ease_out_bounds():
    assert ease_out(0) == 0
    assert ease_out(1) == 1
    assert ease_out(2) == 1
    assert ease_out(0.5) > 0.5


class TestAnimationPlayer:
    def test_empty_transcript_does_not_run(self):
        player = AnimationPlayer(200)
        player.start([], 0)
        assert not player.is_running
        assert player.progress(50) == 1.0

    def test_finishes_after_duration(self):
        player = AnimationPlayer(200)
        player.start([SLIDE], 1000)
        assert player.is_running
        assert not player.update(1100)
        assert player.update(1200)
        assert not player.is_running

    def test_slide_interpolates_between_cells(self):
        player = AnimationPlayer(260)
        player.start([SLIDE], 0)
        start = player.sprites(0)[0]
        assert (start.row, start.col) == (0, 3)
        landed = player.sprites(140)[0]
        assert landed.col == pytest.approx(1)
        assert landed.value == 2

    def test_merge_shows_both_halves(self):
        player = AnimationPlayer(260)
        player.start([MERGE], 0)
        sprites = player.sprites(0)
        assert sorted((s.col, s.value) for s in sprites) == [(0, 2), (2, 2)]

    def test_merge_partner_that_slid_is_not_duplicated(self):
        partner = MoveEvent(EventKind.SLIDE, (0, 1), (0, 0), 2)
        player = AnimationPlayer(260)
        player.start([partner, MERGE], 0)
        assert len(player.sprites(0)) == 2

    def test_appear_waits_for_slides(self):
        player = AnimationPlayer(260)
        player.start([SLIDE, APPEAR], 0)
        assert all(s.value != 2 or s.row != 3 for s in player.sprites(100))
        grown = [s for s in player.sprites(260) if (s.row, s.col) == (3, 3)]
        assert grown[0].scale == pytest.approx(1.0)

    def test_covered_cells(self):
        player = AnimationPlayer(260)
        player.start([SLIDE, MERGE, APPEAR], 0)
        assert player.covered_cells() == {(0, 1), (0, 0), (3, 3)}
