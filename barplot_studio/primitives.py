from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

# Path segments: ("M", x, y) | ("L", x, y) | ("Q", cx, cy, x, y) | ("Z",)
Segment = Tuple
PathSegments = Tuple[Segment, ...]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    fill_opacity: float = 1.0
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    stroke_opacity: float = 1.0
    # "pattern-<id>" when filled with a pattern tile
    pattern_id: Optional[str] = None
    role: str = ""
    item_id: Optional[str] = None


@dataclass(frozen=True)
class Path:
    segments: PathSegments
    fill: Optional[str] = None
    fill_opacity: float = 1.0
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    stroke_opacity: float = 1.0
    pattern_id: Optional[str] = None
    role: str = ""
    item_id: Optional[str] = None


@dataclass(frozen=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float
    stroke: str
    stroke_width: float = 1.0
    stroke_opacity: float = 1.0
    dash: Optional[Tuple[float, ...]] = None
    round_cap: bool = False
    role: str = ""
    item_id: Optional[str] = None


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float
    fill: str
    fill_opacity: float = 1.0


@dataclass(frozen=True)
class Text:
    x: float
    y: float
    text: str
    font_size: float
    fill: str
    anchor: str = "middle"        # start | middle | end
    baseline: str = "auto"        # auto | middle
    rotation: float = 0.0         # degrees, around (x, y)
    font_weight: int = 400
    role: str = ""
    item_id: Optional[str] = None
    fill_opacity: float = 1.0
    italic: bool = False
    underline: bool = False


@dataclass(frozen=True)
class PatternTile:
    id: str
    size: float
    background: Rect
    accents: Tuple[Union[Line, Circle], ...]


Primitive = Union[Rect, Path, Line, Circle, Text]


@dataclass(frozen=True)
class RenderTree:
    width: float
    height: float
    background_color: str
    patterns: Tuple[PatternTile, ...] = ()
    elements: Tuple[Primitive, ...] = field(default_factory=tuple)

    def by_role(self, role: str) -> Tuple[Primitive, ...]:
        return tuple(e for e in self.elements if getattr(e, "role", "") == role)
