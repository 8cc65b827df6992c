from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field, replace
from typing import Dict, List, Literal, Optional, Sequence, Tuple


Orientation = Literal["vertical", "horizontal"]
CornerStyle = Literal["top", "both"]
BarPattern = Literal["solid", "diagonal", "dots", "crosshatch", "vertical"]
ErrorBarMode = Literal["global", "match"]
GridLineStyle = Literal["solid", "dashed", "dotted"]

ORIENTATIONS: Tuple[str, ...] = ("vertical", "horizontal")
CORNER_STYLES: Tuple[str, ...] = ("top", "both")
PATTERNS: Tuple[str, ...] = ("solid", "diagonal", "dots", "crosshatch", "vertical")
ERROR_BAR_MODES: Tuple[str, ...] = ("global", "match")
GRID_LINE_STYLES: Tuple[str, ...] = ("solid", "dashed", "dotted")

MIN_PATTERN_SIZE = 2.0

PALETTES: Dict[str, Tuple[str, ...]] = {
    "vibrant": ("#3b82f6", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#ec4899", "#14b8a6"),
    "cool": ("#0ea5e9", "#6366f1", "#22d3ee", "#38bdf8", "#a855f7", "#2dd4bf", "#1e3a8a"),
    "warm": ("#fb923c", "#f97316", "#ef4444", "#facc15", "#b45309", "#f87171", "#fbbf24"),
    "pastel": ("#a5b4fc", "#fbcfe8", "#fde68a", "#bbf7d0", "#fca5a5", "#c4b5fd", "#f5d0fe"),
}
DEFAULT_PALETTE = "vibrant"


@dataclass(frozen=True)
class DataItem:
    # stable identity for selection/focus correlation; never reused
    id: str
    label: str
    value: float
    fill_color: str
    border_color: str = "#0f172a"
    border_width: float = 2.0
    opacity: float = 0.85
    border_opacity: float = 1.0
    # half-width of the error bar, in value units
    error: float = 0.0
    group: Optional[str] = None
    pattern: BarPattern = "solid"
    pattern_color: str = "#ffffff"
    pattern_opacity: float = 0.35
    pattern_size: float = 8.0


@dataclass(frozen=True)
class AxisConfig:
    title: str = ""
    show_axis_line: bool = True
    show_tick_labels: bool = True
    show_grid_lines: bool = False
    axis_line_color: str = "#e2e8f0"
    axis_line_width: float = 1.5
    tick_label_color: str = "#cbd5f5"
    tick_label_rotation: float = 0.0
    grid_line_color: str = "#334155"
    grid_line_width: float = 1.0
    grid_line_style: GridLineStyle = "solid"
    grid_line_opacity: float = 0.6
    title_font_size: float = 16.0
    tick_font_size: float = 12.0
    tick_offset_x: float = 0.0
    tick_offset_y: float = 0.0
    # perpendicular shift of the axis title (down for x, right for y)
    title_offset: float = 0.0

    # None means "auto": derived from the data
    min: Optional[float] = None
    max: Optional[float] = None
    tick_step: Optional[float] = None


@dataclass(frozen=True)
class TextAnnotation:
    """Free text placed relative to the plot area's top-left corner."""

    id: str
    text: str = "New Text"
    x: float = 100.0
    y: float = 100.0
    font_size: float = 16.0
    color: str = "#ffffff"
    opacity: float = 1.0
    rotation: float = 0.0
    bold: bool = False
    italic: bool = False
    underline: bool = False


@dataclass(frozen=True)
class StyleConfig:
    orientation: Orientation = "vertical"
    bar_gap: float = 0.2
    bar_corner_radius: float = 6.0
    bar_corner_style: CornerStyle = "top"
    bar_opacity: float = 0.85
    bar_border_width: float = 2.0
    show_border: bool = True

    show_error_bars: bool = False
    error_bar_mode: ErrorBarMode = "global"
    error_bar_color: str = "#e2e8f0"
    error_bar_width: float = 1.5
    error_bar_cap_width: float = 12.0

    show_value_labels: bool = True
    value_label_font_size: float = 12.0
    value_label_offset_x: float = 0.0
    value_label_offset_y: float = 0.0

    background_color: str = "#0f172a"
    text_color: str = "#e2e8f0"
    canvas_padding: float = 24.0

    title: str = "Bar chart"
    subtitle: str = ""
    title_font_size: float = 22.0
    subtitle_font_size: float = 14.0
    title_offset_x: float = 0.0
    title_offset_y: float = 0.0
    subtitle_offset_x: float = 0.0
    subtitle_offset_y: float = 0.0

    aspect_ratio: float = 0.6
    custom_width: Optional[float] = None
    custom_height: Optional[float] = None
    palette_name: str = DEFAULT_PALETTE

    show_plot_box: bool = False
    plot_box_color: str = "#475569"
    plot_box_line_width: float = 1.0

    export_scale: float = 2.0
    export_transparent: bool = False
    export_file_name: str = "barplot"

    x_axis: AxisConfig = field(default_factory=lambda: AxisConfig(title="Categories"))
    y_axis: AxisConfig = field(default_factory=lambda: AxisConfig(title="Values", show_grid_lines=True))
    annotations: Tuple[TextAnnotation, ...] = ()

    @property
    def is_horizontal(self) -> bool:
        return self.orientation == "horizontal"

    @property
    def value_axis(self) -> AxisConfig:
        """The axis that carries values (y for vertical bars, x for horizontal)."""
        return self.x_axis if self.is_horizontal else self.y_axis

    @property
    def category_axis(self) -> AxisConfig:
        return self.y_axis if self.is_horizontal else self.x_axis


@dataclass(frozen=True)
class ChartState:
    items: Tuple[DataItem, ...]
    style: StyleConfig = field(default_factory=StyleConfig)


def new_item_id() -> str:
    return uuid.uuid4().hex


def palette_colors(palette_name: str) -> Tuple[str, ...]:
    return PALETTES.get(palette_name, PALETTES[DEFAULT_PALETTE])


def create_item(index: int, palette_name: str = DEFAULT_PALETTE) -> DataItem:
    palette = palette_colors(palette_name)
    return DataItem(
        id=new_item_id(),
        label=f"Bar {index + 1}",
        value=10.0,
        fill_color=palette[index % len(palette)],
    )


def default_state(count: int = 4, palette_name: str = DEFAULT_PALETTE) -> ChartState:
    count = max(int(count), 1)
    items = tuple(create_item(i, palette_name) for i in range(count))
    return ChartState(items=items, style=StyleConfig(palette_name=palette_name))


# -----------------------------
# Item list edits (copy-on-write)
# -----------------------------

def add_item(items: Sequence[DataItem], palette_name: str = DEFAULT_PALETTE) -> Tuple[DataItem, ...]:
    return tuple(items) + (create_item(len(items), palette_name),)


def update_item(items: Sequence[DataItem], item_id: str, **changes) -> Tuple[DataItem, ...]:
    if "pattern_size" in changes:
        changes["pattern_size"] = max(float(changes["pattern_size"]), MIN_PATTERN_SIZE)
    out: List[DataItem] = []
    for item in items:
        out.append(replace(item, **changes) if item.id == item_id else item)
    return tuple(out)


def remove_item(items: Sequence[DataItem], item_id: str) -> Tuple[DataItem, ...]:
    index = next((i for i, item in enumerate(items) if item.id == item_id), None)
    # the last remaining item can never be removed
    if index is None or len(items) <= 1:
        return tuple(items)
    return tuple(items[:index]) + tuple(items[index + 1:])


def move_item(items: Sequence[DataItem], item_id: str, direction: int) -> Tuple[DataItem, ...]:
    index = next((i for i, item in enumerate(items) if item.id == item_id), None)
    if index is None:
        return tuple(items)
    target = index + (1 if direction > 0 else -1)
    if target < 0 or target >= len(items):
        return tuple(items)
    out = list(items)
    out.insert(target, out.pop(index))
    return tuple(out)


def apply_palette(items: Sequence[DataItem], palette_name: str) -> Tuple[DataItem, ...]:
    palette = palette_colors(palette_name)
    return tuple(replace(item, fill_color=palette[i % len(palette)]) for i, item in enumerate(items))


# -----------------------------
# Style edits
# -----------------------------

def swap_axes(style: StyleConfig) -> StyleConfig:
    return replace(style, x_axis=style.y_axis, y_axis=style.x_axis)


def set_orientation(style: StyleConfig, orientation: str) -> StyleConfig:
    """
    Switch bar orientation.

    The category and value axes trade places, so the full axis configurations
    (titles, font sizes, tick offsets, title offsets, bounds) move with them.
    """
    if orientation not in ORIENTATIONS:
        raise ValueError(f"Unsupported orientation: {orientation}")
    if orientation == style.orientation:
        return style
    return replace(swap_axes(style), orientation=orientation)


def create_annotation(**changes) -> TextAnnotation:
    return TextAnnotation(id=new_item_id(), **changes)


def add_annotation(style: StyleConfig, annotation: Optional[TextAnnotation] = None) -> StyleConfig:
    return replace(style, annotations=style.annotations + (annotation or create_annotation(),))


def update_annotation(style: StyleConfig, annotation_id: str, **changes) -> StyleConfig:
    annotations = tuple(
        replace(a, **changes) if a.id == annotation_id else a for a in style.annotations
    )
    return replace(style, annotations=annotations)


def remove_annotation(style: StyleConfig, annotation_id: str) -> StyleConfig:
    return replace(style, annotations=tuple(a for a in style.annotations if a.id != annotation_id))


def with_items(state: ChartState, items: Sequence[DataItem]) -> ChartState:
    if not items:
        return state
    return replace(state, items=tuple(items))


def data_extent(items: Sequence[DataItem], show_error_bars: bool = False) -> Tuple[float, float]:
    """Return (min, max) over plotted values, always including zero."""
    lo = math.inf
    hi = -math.inf
    for item in items:
        value = item.value
        if not math.isfinite(value):
            continue
        err = item.error if (show_error_bars and math.isfinite(item.error)) else 0.0
        err = abs(err)
        lo = min(lo, value - err)
        hi = max(hi, value + err)
    if not math.isfinite(lo):
        lo = 0.0
    if not math.isfinite(hi):
        hi = 1.0
    return min(lo, 0.0), max(hi, 0.0)
