import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SKIN = "Classic"
LOCKED_SKINS = {"Royal": 1}
CROWN_MIN_TILE = 512
DEFAULT_SKINS_FILE = os.path.join(os.path.dirname(__file__), "skins.json")

RGB = Tuple[int, int, int]
FALLBACK_COLOR: RGB = (128, 128, 128)
BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)


def hex_to_rgb(value: str) -> RGB:
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Invalid colour: {value!r}")
    try:
        return int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16)
    except ValueError:
        raise ValueError(f"Invalid colour: {value!r}") from None


def _safe_rgb(value: str, fallback: RGB) -> RGB:
    try:
        return hex_to_rgb(value)
    except ValueError:
        return fallback


def blend(color: RGB, target: RGB, amount: float) -> RGB:
    amount = max(0.0, min(1.0, amount))
    return tuple(round(c + (t - c) * amount) for c, t in zip(color, target))


@dataclass
class Skin:
    name: str
    background_color: str = "#FAF8EF"
    grid_color: str = "#BBADA0"
    text_color: str = "#776E65"
    tile_colors: Dict[int, str] = field(default_factory=dict)
    use_gradient: bool = False
    show_crown: bool = False
    border_width: int = 1
    special_border_color: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Skin":
        return cls(
            name=str(data["name"]),
            background_color=data.get("background_color", "#FAF8EF"),
            grid_color=data.get("grid_color", "#BBADA0"),
            text_color=data.get("text_color", "#776E65"),
            tile_colors={int(key): value for key, value in data.get("tile_colors", {}).items()},
            use_gradient=bool(data.get("use_gradient", False)),
            show_crown=bool(data.get("show_crown", False)),
            border_width=int(data.get("border_width", 1)),
            special_border_color=data.get("special_border_color", ""),
        )

    @property
    def background_rgb(self) -> RGB:
        return _safe_rgb(self.background_color, WHITE)

    @property
    def grid_rgb(self) -> RGB:
        return _safe_rgb(self.grid_color, FALLBACK_COLOR)

    @property
    def text_rgb(self) -> RGB:
        return _safe_rgb(self.text_color, BLACK)

    @property
    def border_rgb(self) -> RGB:
        return _safe_rgb(self.special_border_color, self.grid_rgb)

    def tile_color(self, value: int) -> RGB:
        if value in self.tile_colors:
            return _safe_rgb(self.tile_colors[value], FALLBACK_COLOR)
        # Tiles past the palette reuse its highest colour.
        larger = [key for key in self.tile_colors if key <= value]
        if value and larger:
            return _safe_rgb(self.tile_colors[max(larger)], FALLBACK_COLOR)
        return FALLBACK_COLOR

    def text_color_for_tile(self, value: int) -> RGB:
        r, g, b = self.tile_color(value)
        brightness = r * 0.299 + g * 0.587 + b * 0.114
        return BLACK if brightness > 150 else WHITE

    def gradient_colors(self, value: int) -> Tuple[RGB, RGB]:
        """Top and bottom colours of a tile; both equal the flat colour without a gradient."""
        base = self.tile_color(value)
        if not self.use_gradient or not value:
            return base, base
        return blend(base, WHITE, 0.3), blend(base, BLACK, 0.2)

    def has_crown(self, value: int) -> bool:
        return self.show_crown and value >= CROWN_MIN_TILE


def _palette(*colors: str) -> Dict[int, str]:
    return {0 if idx == 0 else 2 ** idx: color for idx, color in enumerate(colors)}


def builtin_skins() -> List[Skin]:
    return [
        Skin(
            name="Classic",
            tile_colors=_palette(
                "#CDC1B4", "#EEE4DA", "#EDE0C8", "#F2B179", "#F59563", "#F67C5F", "#F65E3B",
                "#EDCF72", "#EDCC61", "#EDC850", "#EDC53F", "#EDC22E",
            ),
        ),
        Skin(
            name="Dark",
            background_color="#1E1E1E",
            grid_color="#3C3C3C",
            text_color="#E0E0E0",
            tile_colors=_palette(
                "#2D2D2D", "#4A4A4A", "#5A5A5A", "#8A5A2B", "#9C4A1F", "#A83A1A", "#B82E12",
                "#8C7A1E", "#9A861C", "#A8921A", "#B69E18", "#C4AA16",
            ),
        ),
        Skin(
            name="Royal",
            background_color="#2B1B3F",
            grid_color="#4B2E6B",
            text_color="#F5E6B8",
            tile_colors=_palette(
                "#3D2757", "#6A4C93", "#7B5AA6", "#8E44AD", "#9B59B6", "#B8860B", "#C9A227",
                "#D4AF37", "#E0BC45", "#EBC853", "#F3D462", "#FFD700",
            ),
            use_gradient=True,
            show_crown=True,
            border_width=3,
            special_border_color="#FFD700",
        ),
    ]


class SkinCatalog:
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or DEFAULT_SKINS_FILE
        self._skins: Dict[str, Skin] = {}
        self.reload()

    def reload(self) -> None:
        self._skins = {skin.name: skin for skin in builtin_skins()}
        if not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as handler:
                entries = json.load(handler)
            loaded = [Skin.from_dict(entry) for entry in entries]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.warning("Could not load skins from %s, using built-in skins: %s", self.path, exc)
            return
        for skin in loaded:
            if skin.name:
                self._skins[skin.name] = skin

    def names(self) -> List[str]:
        return list(self._skins)

    def get(self, name: str) -> Skin:
        return self._skins.get(name) or self._skins[DEFAULT_SKIN]

    @staticmethod
    def is_unlocked(name: str, total_wins: int) -> bool:
        return total_wins >= LOCKED_SKINS.get(name, 0)

    def unlocked_names(self, total_wins: int) -> List[str]:
        return [name for name in self._skins if self.is_unlocked(name, total_wins)]

    def next_unlocked(self, current: str, total_wins: int) -> str:
        names = self.unlocked_names(total_wins)
        if current not in names:
            return names[0]
        return names[(names.index(current) + 1) % len(names)]
