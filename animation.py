from dataclasses import dataclass
from typing import List, Optional, Sequence, Set, Tuple

from game_settings import clamp_speed
from grid_engine import Cell, EventKind, MoveEvent

# Slide and spawn phases at the default speed of 10.
MOVE_PHASE_MS = 140
SPAWN_PHASE_MS = 120
DEFAULT_SPEED = 10


def duration_for_speed(speed: int) -> int:
    return round((MOVE_PHASE_MS + SPAWN_PHASE_MS) * DEFAULT_SPEED / clamp_speed(speed))


def ease_out(t: float) -> float:
    t = max(0.0, min(1.0, t))
    return 1 - (1 - t) ** 2


@dataclass
class TileSprite:
    row: float
    col: float
    value: int
    scale: float = 1.0


class AnimationPlayer:
    """Plays one move transcript: tiles slide first, spawned tiles grow in after."""

    def __init__(self, duration_ms: int = MOVE_PHASE_MS + SPAWN_PHASE_MS) -> None:
        self.duration_ms = duration_ms
        self.events: Tuple[MoveEvent, ...] = ()
        self.start_time: Optional[int] = None

    @property
    def move_share(self) -> float:
        return MOVE_PHASE_MS / (MOVE_PHASE_MS + SPAWN_PHASE_MS)

    @property
    def is_running(self) -> bool:
        return self.start_time is not None

    def start(self, events: Sequence[MoveEvent], now_ms: int) -> None:
        self.events = tuple(events)
        self.start_time = now_ms if self.events else None

    def stop(self) -> None:
        self.events = ()
        self.start_time = None

    def progress(self, now_ms: int) -> float:
        if self.start_time is None:
            return 1.0
        if self.duration_ms <= 0:
            return 1.0
        return max(0.0, min(1.0, (now_ms - self.start_time) / self.duration_ms))

    def update(self, now_ms: int) -> bool:
        """Returns True once the running animation has finished."""
        if self.start_time is None:
            return False
        if self.progress(now_ms) >= 1.0:
            self.stop()
            return True
        return False

    def covered_cells(self) -> Set[Cell]:
        return {event.end for event in self.events}

    def sprites(self, now_ms: int) -> List[TileSprite]:
        p = self.progress(now_ms)
        move_t = ease_out(p / self.move_share) if self.move_share else 1.0
        sprites: List[TileSprite] = []

        slide_ends = {event.end for event in self.events if event.kind is EventKind.SLIDE}
        for event in self.events:
            if event.kind is EventKind.APPEAR:
                continue
            value = event.value // 2 if event.kind is EventKind.MERGE else event.value
            if event.kind is EventKind.MERGE and event.end not in slide_ends:
                # The stationary partner of a merge.
                sprites.append(TileSprite(float(event.end[0]), float(event.end[1]), value))
            row = event.start[0] + (event.end[0] - event.start[0]) * move_t
            col = event.start[1] + (event.end[1] - event.start[1]) * move_t
            sprites.append(TileSprite(row, col, value))

        if p > self.move_share:
            spawn_t = (p - self.move_share) / (1 - self.move_share)
            for event in self.events:
                if event.kind is EventKind.APPEAR:
                    row, col = event.end
                    sprites.append(TileSprite(float(row), float(col), event.value, 0.5 + 0.5 * spawn_t))
        return sprites
