import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 4
WIN_TILE = 2048
FOUR_PROBABILITY = 0.1

Cell = Tuple[int, int]
Board = List[List[int]]


class InvalidDirectionError(ValueError):
    pass


class Direction(Enum):
    UP = "UP"
    DOWN = "DOWN"
    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @classmethod
    def parse(cls, value: Union["Direction", str]) -> "Direction":
        if isinstance(value, Direction):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidDirectionError(f"Unknown direction: {value!r}")


class EventKind(Enum):
    APPEAR = "appear"
    SLIDE = "slide"
    MERGE = "merge"


@dataclass(frozen=True)
class MoveEvent:
    kind: EventKind
    start: Cell
    end: Cell
    value: int


def is_power_of_two(value: int) -> bool:
    return value >= 2 and value & (value - 1) == 0


class GridEngine:
    """Board, score and terminal flags of a single 2048 game.

    Every successful move leaves a transcript of MoveEvents in ``last_events``
    for the renderer; it is replaced on the next move or restart.
    """

    def __init__(
        self,
        size: int = DEFAULT_SIZE,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        on_first_win: Optional[Callable[[], object]] = None,
        win_tile: int = WIN_TILE,
        board: Optional[Sequence[Sequence[int]]] = None,
        score: int = 0,
    ) -> None:
        if board is not None:
            size = len(board)
        if size < 2:
            raise ValueError("Board size must be at least 2.")
        self.size = size
        self.win_tile = win_tile
        self.on_first_win = on_first_win
        self._rng = rng if rng is not None else random.Random(seed)
        self._board: Board = []
        self.score = 0
        self.game_over = False
        self.won = False
        self.first_win_achieved = False
        self.last_score_gain = 0
        self._events: List[MoveEvent] = []
        if board is None:
            self.restart()
        else:
            self._load(board, score)

    def _load(self, board: Sequence[Sequence[int]], score: int) -> None:
        # A preset position never fires the win hook.
        if any(len(row) != self.size for row in board):
            raise ValueError("Board must be a square matrix.")
        for row in board:
            for value in row:
                if value != 0 and not is_power_of_two(value):
                    raise ValueError(f"Invalid tile value: {value!r}")
        if score < 0:
            raise ValueError("Score must be non-negative.")
        self._board = [list(row) for row in board]
        self.score = score
        self.won = self.max_tile() >= self.win_tile
        self.game_over = not self.can_move()

    @property
    def board(self) -> Board:
        return [list(row) for row in self._board]

    @property
    def last_events(self) -> Tuple[MoveEvent, ...]:
        return tuple(self._events)

    def restart(self) -> None:
        self._board = [[0 for _ in range(self.size)] for _ in range(self.size)]
        self.score = 0
        self.game_over = False
        self.won = False
        self.first_win_achieved = False
        self.last_score_gain = 0
        self._events = []
        self._spawn_tile()
        self._spawn_tile()

    def empty_cells(self) -> List[Cell]:
        return [(r, c) for r in range(self.size) for c in range(self.size) if self._board[r][c] == 0]

    def max_tile(self) -> int:
        return max(cell for row in self._board for cell in row)

    def can_move(self) -> bool:
        if self.empty_cells():
            return True
        for r in range(self.size):
            for c in range(self.size):
                value = self._board[r][c]
                if c + 1 < self.size and self._board[r][c + 1] == value:
                    return True
                if r + 1 < self.size and self._board[r + 1][c] == value:
                    return True
        return False

    def move(self, direction: Union[Direction, str]) -> bool:
        direction = Direction.parse(direction)
        if self.game_over:
            return False

        events: List[MoveEvent] = []
        gain = 0
        for line in self._lines(direction):
            gain += self._collapse_line(line, events)

        self._events = events
        self.last_score_gain = gain
        if not events:
            logger.debug("Move %s changed nothing", direction.name)
            return False

        self.score += gain
        self._spawn_tile()
        self._check_status()
        logger.debug("Move %s: gain=%d score=%d", direction.name, gain, self.score)
        return True

    def _lines(self, direction: Direction) -> List[List[Cell]]:
        # Each line starts at the edge tiles travel towards.
        n = self.size
        if direction is Direction.LEFT:
            return [[(r, c) for c in range(n)] for r in range(n)]
        if direction is Direction.RIGHT:
            return [[(r, c) for c in reversed(range(n))] for r in range(n)]
        if direction is Direction.UP:
            return [[(r, c) for r in range(n)] for c in range(n)]
        return [[(r, c) for r in reversed(range(n))] for c in range(n)]

    def _collapse_line(self, line: List[Cell], events: List[MoveEvent]) -> int:
        grid = self._board
        merged = [False] * len(line)
        gain = 0

        for idx in range(1, len(line)):
            sr, sc = line[idx]
            value = grid[sr][sc]
            if value == 0:
                continue

            dest = idx
            while dest > 0 and grid[line[dest - 1][0]][line[dest - 1][1]] == 0:
                dest -= 1

            if dest > 0 and not merged[dest - 1]:
                tr, tc = line[dest - 1]
                if grid[tr][tc] == value:
                    grid[sr][sc] = 0
                    grid[tr][tc] = value * 2
                    merged[dest - 1] = True
                    gain += value * 2
                    events.append(MoveEvent(EventKind.MERGE, (sr, sc), (tr, tc), value * 2))
                    continue

            if dest != idx:
                dr, dc = line[dest]
                grid[sr][sc] = 0
                grid[dr][dc] = value
                events.append(MoveEvent(EventKind.SLIDE, (sr, sc), (dr, dc), value))

        return gain

    def _spawn_tile(self) -> Optional[MoveEvent]:
        empty_cells = self.empty_cells()
        if not empty_cells:
            return None
        r, c = self._rng.choice(empty_cells)
        value = 4 if self._rng.random() < FOUR_PROBABILITY else 2
        self._board[r][c] = value
        event = MoveEvent(EventKind.APPEAR, (r, c), (r, c), value)
        self._events.append(event)
        return event

    def _check_status(self) -> None:
        if not self.won and self.max_tile() >= self.win_tile:
            self.won = True
            self.first_win_achieved = True
            logger.info("Reached %d with score %d", self.win_tile, self.score)
            if self.on_first_win is not None:
                self.on_first_win()

        if not self.can_move():
            self.game_over = True
            logger.info("Game over with score %d", self.score)
