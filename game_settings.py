import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from typing import Optional

logger = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "GAME2048_SETTINGS"
DEFAULT_SETTINGS_FILE = os.path.join(os.path.dirname(__file__), "settings.json")
MIN_ANIMATION_SPEED = 1
MAX_ANIMATION_SPEED = 20


def clamp_speed(speed: int) -> int:
    return max(MIN_ANIMATION_SPEED, min(MAX_ANIMATION_SPEED, int(speed)))


@dataclass
class GameSettings:
    current_skin: str = "Classic"
    animation_speed: int = 10
    dark_theme: bool = False
    total_wins: int = 0
    best_score: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "GameSettings":
        known = {f.name for f in fields(cls)}
        settings = cls(**{key: value for key, value in data.items() if key in known})
        settings.current_skin = str(settings.current_skin)
        settings.animation_speed = clamp_speed(settings.animation_speed)
        settings.dark_theme = bool(settings.dark_theme)
        settings.total_wins = max(0, int(settings.total_wins))
        settings.best_score = max(0, int(settings.best_score))
        return settings


class SettingsStore:
    """JSON-file backed settings and lifetime statistics.

    Read and write failures are logged and never raised, so a broken settings
    file can not interrupt a running game.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or os.environ.get(SETTINGS_ENV_VAR) or DEFAULT_SETTINGS_FILE

    def load(self) -> GameSettings:
        if not os.path.exists(self.path):
            settings = GameSettings()
            self.save(settings)
            return settings
        try:
            with open(self.path, "r", encoding="utf-8") as handler:
                data = json.load(handler)
            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")
            return GameSettings.from_dict(data)
        except (OSError, json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.warning("Could not read settings from %s: %s", self.path, exc)
            return GameSettings()

    def save(self, settings: GameSettings) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as handler:
                json.dump(asdict(settings), handler, indent=2)
        except OSError as exc:
            logger.warning("Could not write settings to %s: %s", self.path, exc)

    def record_win(self) -> int:
        settings = self.load()
        settings.total_wins += 1
        self.save(settings)
        logger.info("Total wins: %d", settings.total_wins)
        return settings.total_wins

    def record_score(self, score: int) -> bool:
        settings = self.load()
        if score <= settings.best_score:
            return False
        settings.best_score = score
        self.save(settings)
        return True

    def total_wins(self) -> int:
        return self.load().total_wins
