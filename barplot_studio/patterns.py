from __future__ import annotations

import math
from typing import Optional, Tuple, Union

from .data_model import DataItem, MIN_PATTERN_SIZE
from .primitives import Circle, Line, PatternTile, Rect
from .scales import clamp

DEFAULT_PATTERN_SIZE = 8.0
DEFAULT_ACCENT_OPACITY = 0.35


def pattern_id(item_id: str) -> str:
    return f"pattern-{item_id}"


def build_pattern_tile(
    kind: str,
    size: float,
    accent_color: str,
    accent_opacity: float,
    fill_color: str,
    fill_opacity: float = 1.0,
    *,
    tile_id: str = "pattern",
) -> Optional[PatternTile]:
    """
    Repeating tile for a non-solid bar fill.

    Everything is derived from the tile size alone; solid (and unknown)
    kinds produce no tile.
    """
    size = max(size if math.isfinite(size) else DEFAULT_PATTERN_SIZE, MIN_PATTERN_SIZE)
    accent_opacity = clamp(accent_opacity if math.isfinite(accent_opacity) else DEFAULT_ACCENT_OPACITY, 0.0, 1.0)
    accent = accent_color or "#ffffff"

    primary = max(size * 0.18, 0.75)
    secondary = max(size * 0.14, 0.6)
    half = size / 2
    quarter = size / 4
    dot_r = max(size * 0.2, 1.0)

    def stroke(x1: float, y1: float, x2: float, y2: float, width: float) -> Line:
        return Line(x1, y1, x2, y2, stroke=accent, stroke_width=width, stroke_opacity=accent_opacity)

    accents: Tuple[Union[Line, Circle], ...]
    if kind == "diagonal":
        accents = (
            stroke(0, size, size, 0, primary),
            stroke(-half, size, half, 0, primary),
            stroke(half, size, size + half, 0, primary),
        )
    elif kind == "dots":
        accents = (
            Circle(quarter * 1.5, quarter * 1.5, dot_r, fill=accent, fill_opacity=accent_opacity),
            Circle(size - quarter * 1.5, size - quarter * 1.5, dot_r, fill=accent, fill_opacity=accent_opacity),
        )
    elif kind == "crosshatch":
        accents = (
            stroke(0, half, size, half, secondary),
            stroke(half, 0, half, size, secondary),
        )
    elif kind == "vertical":
        accents = (
            stroke(quarter, 0, quarter, size, primary),
            stroke(size - quarter, 0, size - quarter, size, primary),
        )
    else:
        return None

    background = Rect(0.0, 0.0, size, size, fill=fill_color, fill_opacity=fill_opacity)
    return PatternTile(id=tile_id, size=size, background=background, accents=accents)


def tile_for_item(item: DataItem, opacity: float) -> Optional[PatternTile]:
    return build_pattern_tile(
        item.pattern,
        item.pattern_size,
        item.pattern_color,
        item.pattern_opacity,
        item.fill_color,
        opacity,
        tile_id=pattern_id(item.id),
    )
