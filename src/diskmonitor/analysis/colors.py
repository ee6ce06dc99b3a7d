"""
Deterministic colour assignment for chart groups.

Every database gets a base colour from a fixed palette the first time it is
seen, and keeps it until the registry is reset. Drive groups take palette
colours by position. File groups are lighter and darker shades of their
database's base colour, so all files of one database read as one family.
"""

import colorsys
import logging
from typing import Dict, List, Mapping, Tuple

from plotly.colors import hex_to_rgb

from ..models.series import GroupBy, GroupInfo

logger = logging.getLogger(__name__)

PALETTE: Tuple[str, ...] = (
    "#61DAFB", "#E06C75", "#98C379", "#E5C07B", "#C678DD", "#56B6C2",
    "#D19A66", "#BE5046", "#ABB2BF", "#528BFF", "#FF6B6B", "#4ECDC4",
    "#F0C674", "#81A2BE", "#CC6666", "#B5BD68", "#8ABEB7", "#DE935F",
)

# Lightness window and saturation boost for per-file shades.
SHADE_MIN_LIGHTNESS = 0.20
SHADE_MAX_LIGHTNESS = 0.82
SHADE_SPREAD = 0.22
SHADE_SATURATION_BOOST = 1.05


class ColorRegistry:
    """
    Database name to palette index, assigned on first encounter.

    Indices only grow; a name keeps its index until reset(). The registry is
    owned by the workspace and passed in to every rebuild.
    """

    def __init__(self):
        self._indices: Dict[str, int] = {}
        self._next_index = 0

    def index_for(self, database_name: str) -> int:
        index = self._indices.get(database_name)
        if index is None:
            index = self._next_index
            self._indices[database_name] = index
            self._next_index += 1
        return index

    def base_color(self, database_name: str) -> str:
        return palette_color(self.index_for(database_name))

    def reset(self) -> None:
        self._indices.clear()
        self._next_index = 0

    def __contains__(self, database_name: str) -> bool:
        return database_name in self._indices

    def __len__(self) -> int:
        return len(self._indices)


def palette_color(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def hex_to_hsl(color: str) -> Tuple[float, float, float]:
    """``#rrggbb`` to ``(hue, saturation, lightness)``, each in [0, 1]."""
    r, g, b = hex_to_rgb(color)
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    return h, s, l


def _channel(value: float) -> int:
    return int(min(max(value * 255, 0), 255))


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    """``(hue, saturation, lightness)`` to ``#RRGGBB``; channels are truncated."""
    r, g, b = colorsys.hls_to_rgb(hue, lightness, saturation)
    return "#{:02X}{:02X}{:02X}".format(_channel(r), _channel(g), _channel(b))


def shade(base_color: str, index: int, total: int) -> str:
    """
    The ``index``-th of ``total`` shades of ``base_color``.

    Lightness runs from darkest (index 0) to lightest (index total-1) within
    a window around the base lightness. With a single shade the base colour
    is returned unchanged.
    """
    if total <= 1:
        return base_color
    hue, saturation, lightness = hex_to_hsl(base_color)
    low = max(SHADE_MIN_LIGHTNESS, lightness - SHADE_SPREAD)
    high = min(SHADE_MAX_LIGHTNESS, lightness + SHADE_SPREAD)
    new_lightness = low + (high - low) * (index / max(total - 1, 1))
    return hsl_to_hex(hue, min(1.0, saturation * SHADE_SATURATION_BOOST), new_lightness)


def assign_colors(
    group_by: GroupBy,
    universe: Mapping[str, GroupInfo],
    registry: ColorRegistry,
) -> Dict[str, str]:
    """
    Map every group key to a hex colour.

    Args:
        group_by: Grouping dimension of the keys
        universe: Group keys with their display attributes
        registry: Database base colour registry; new databases are added to it

    Returns:
        Colour per group key
    """
    colors: Dict[str, str] = {}

    if group_by is GroupBy.FILE:
        by_database: Dict[str, List[str]] = {}
        for key, info in universe.items():
            by_database.setdefault(info.database_name, []).append(key)
        for database_name, keys in by_database.items():
            base = registry.base_color(database_name)
            ordered = sorted(keys)
            for i, key in enumerate(ordered):
                colors[key] = shade(base, i, len(ordered))
    else:
        for position, key in enumerate(sorted(universe)):
            if group_by is GroupBy.DATABASE:
                colors[key] = registry.base_color(universe[key].database_name)
            else:
                colors[key] = palette_color(position)

    logger.debug(f"Assigned {len(colors)} colour(s) for {group_by.value} grouping")
    return colors
