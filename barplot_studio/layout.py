from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .data_model import PATTERNS, AxisConfig, ChartState, DataItem, StyleConfig, data_extent
from .patterns import pattern_id, tile_for_item
from .primitives import Line, Path, PatternTile, Primitive, Rect, RenderTree, Text
from .scales import AxisMapping, clamp
from .shapes import build_bar_path
from .ticks import TickScale, format_tick, format_value, generate_ticks

DEFAULT_CANVAS_WIDTH = 960.0
MIN_CANVAS_HEIGHT = 320.0
MIN_BAR_THICKNESS = 4.0
MAX_BAR_GAP = 0.9
MAX_CORNER_RADIUS = 96.0
MIN_ERROR_BAR_PX = 0.5

DASH_PATTERNS = {
    "dashed": (8.0, 4.0),
    "dotted": (2.0, 2.0),
}


@dataclass(frozen=True)
class Margins:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class PlotBounds:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class BarGeometry:
    item: DataItem
    x: float
    y: float
    width: float
    height: float
    # midpoint of the bar across the category axis
    center: float
    band_start: float
    band_size: float
    thickness: float
    # band_size - thickness; negative once the minimum thickness kicks in
    gap: float
    opacity: float
    border_width: float


class OrientationFrame:
    """
    Maps the (category axis, value axis) pair onto canvas x/y.

    Vertical bars spread along x and grow along y (upward); horizontal bars
    spread along y and grow along x (rightward).
    """

    def __init__(self, orientation: str, bounds: PlotBounds) -> None:
        self.orientation = orientation
        self.bounds = bounds

    @property
    def horizontal(self) -> bool:
        return self.orientation == "horizontal"

    @property
    def category_start(self) -> float:
        return self.bounds.top if self.horizontal else self.bounds.left

    @property
    def category_extent(self) -> float:
        return self.bounds.height if self.horizontal else self.bounds.width

    def value_mapping(self, axis_min: float, axis_max: float) -> AxisMapping:
        b = self.bounds
        if self.horizontal:
            return AxisMapping(axis_min, axis_max, b.left, b.right)
        return AxisMapping(axis_min, axis_max, b.bottom, b.top)

    def value_base(self, mapping: AxisMapping) -> float:
        """Pixel where bars start: the zero baseline for vertical, the left edge for horizontal."""
        if self.horizontal:
            return mapping.pixel_start
        return mapping.baseline()

    def point(self, category: float, value_px: float) -> Tuple[float, float]:
        if self.horizontal:
            return value_px, category
        return category, value_px

    def rect(self, category: float, thickness: float, value_a: float, value_b: float) -> Tuple[float, float, float, float]:
        lo, hi = min(value_a, value_b), max(value_a, value_b)
        if self.horizontal:
            return lo, category, hi - lo, thickness
        return category, lo, thickness, hi - lo

    def value_line(self, value_px: float) -> Tuple[float, float, float, float]:
        """Grid line across the plot at a value-axis position."""
        b = self.bounds
        if self.horizontal:
            return value_px, b.top, value_px, b.bottom
        return b.left, value_px, b.right, value_px

    def category_line(self, category: float) -> Tuple[float, float, float, float]:
        b = self.bounds
        if self.horizontal:
            return b.left, category, b.right, category
        return category, b.top, category, b.bottom


# -----------------------------
# Canvas, margins, bounds
# -----------------------------

def compute_canvas_size(style: StyleConfig, measured_width: Optional[float] = None) -> Tuple[float, float]:
    custom_w = style.custom_width if style.custom_width and style.custom_width > 0 else None
    custom_h = style.custom_height if style.custom_height and style.custom_height > 0 else None
    width = custom_w or (measured_width if measured_width and measured_width > 0 else DEFAULT_CANVAS_WIDTH)
    aspect = clamp(style.aspect_ratio if math.isfinite(style.aspect_ratio or math.nan) else 0.6, 0.2, 2.0)
    height = custom_h or max(width * aspect, MIN_CANVAS_HEIGHT)
    return float(width), float(height)


def _heading_gap(style: StyleConfig) -> float:
    if style.title and style.subtitle:
        return max(style.subtitle_font_size * 0.5, 12.0)
    return 0.0


def compute_margins(style: StyleConfig, width: float, height: float) -> Margins:
    has_title = bool(style.title)
    has_subtitle = bool(style.subtitle)
    title_block = style.title_font_size * 1.6 if has_title else 0.0
    subtitle_block = style.subtitle_font_size * 1.4 if has_subtitle else 0.0
    top_negative = max(
        max(-style.title_offset_y, 0.0) if has_title else 0.0,
        max(-style.subtitle_offset_y, 0.0) if has_subtitle else 0.0,
    )
    if has_title or has_subtitle:
        top_extra = title_block + subtitle_block + _heading_gap(style) + top_negative
    else:
        top_extra = 16.0

    x_axis, y_axis = style.x_axis, style.y_axis
    bottom_extra = (x_axis.tick_font_size + 24 if x_axis.show_tick_labels else 16) + max(x_axis.title_offset, 0.0)
    left_extra = (y_axis.tick_font_size + 28 if y_axis.show_tick_labels else 16) + max(-y_axis.title_offset, 0.0)
    label_extra = abs(style.value_label_offset_y) if style.value_label_offset_y < 0 else 0.0

    pad = style.canvas_padding
    return Margins(
        top=clamp(pad + top_extra + label_extra, 24, height / 2 - 20),
        right=clamp(pad + 12, 24, width / 2 - 20),
        bottom=clamp(pad + bottom_extra, 32, height / 2 - 20),
        left=clamp(pad + left_extra, 32, width / 2 - 20),
    )


def compute_plot_bounds(margins: Margins, width: float, height: float) -> PlotBounds:
    return PlotBounds(
        left=margins.left,
        top=margins.top,
        width=max(width - margins.left - margins.right, 120.0),
        height=max(height - margins.top - margins.bottom, 160.0),
    )


# -----------------------------
# Value scale and bars
# -----------------------------

def resolve_value_scale(items: Sequence[DataItem], style: StyleConfig) -> TickScale:
    data_min, data_max = data_extent(items, style.show_error_bars)
    axis = style.value_axis
    if axis.max is None:
        # all-zero data still gets a unit domain
        data_max = max(data_max, data_min + 1)
    return generate_ticks(data_min, data_max, min_value=axis.min, max_value=axis.max, step=axis.tick_step)


def _finite_or(value: float, fallback: float) -> float:
    return value if isinstance(value, (int, float)) and math.isfinite(value) else fallback


def layout_bars(
    items: Sequence[DataItem],
    style: StyleConfig,
    frame: OrientationFrame,
    mapping: AxisMapping,
) -> List[BarGeometry]:
    count = len(items) or 1
    band = frame.category_extent / count
    gap_ratio = clamp(_finite_or(style.bar_gap, 0.0), 0.0, MAX_BAR_GAP)
    thickness = max(band - band * gap_ratio, MIN_BAR_THICKNESS)
    base_px = frame.value_base(mapping)

    out: List[BarGeometry] = []
    for index, item in enumerate(items):
        band_start = frame.category_start + band * index
        category = band_start + (band - thickness) / 2
        tip_px = mapping.to_pixel(_finite_or(item.value, 0.0))
        x, y, w, h = frame.rect(category, thickness, base_px, tip_px)
        out.append(
            BarGeometry(
                item=item,
                x=x,
                y=y,
                width=w,
                height=h,
                center=category + thickness / 2,
                band_start=band_start,
                band_size=band,
                thickness=thickness,
                gap=band - thickness,
                opacity=clamp(_finite_or(item.opacity, style.bar_opacity), 0.0, 1.0),
                border_width=_finite_or(item.border_width, style.bar_border_width),
            )
        )
    return out


# -----------------------------
# Render tree
# -----------------------------

def _grid_line(coords: Tuple[float, float, float, float], axis: AxisConfig, role: str) -> Line:
    x1, y1, x2, y2 = coords
    return Line(
        x1, y1, x2, y2,
        stroke=axis.grid_line_color,
        stroke_width=axis.grid_line_width,
        stroke_opacity=axis.grid_line_opacity,
        dash=DASH_PATTERNS.get(axis.grid_line_style),
        role=role,
    )


def _bar_shape(bar: BarGeometry, style: StyleConfig) -> Primitive:
    item = bar.item
    width = max(bar.width, 0.01)
    height = max(bar.height, 0.01)
    corner = clamp(_finite_or(style.bar_corner_radius, 0.0), 0.0, MAX_CORNER_RADIUS)
    segments = build_bar_path(bar.x, bar.y, width, height, corner, style.bar_corner_style, style.orientation)

    stroke_width = max(bar.border_width, 0.0) if style.show_border else 0.0
    stroke_opacity = _finite_or(item.border_opacity, 1.0) if style.show_border else 0.0
    solid = item.pattern == "solid" or item.pattern not in PATTERNS
    fill = item.fill_color if solid else None
    fill_opacity = bar.opacity if solid else 1.0
    pid = None if solid else pattern_id(item.id)

    if segments is None:
        return Rect(
            bar.x, bar.y, width, height,
            fill=fill, fill_opacity=fill_opacity,
            stroke=item.border_color, stroke_width=stroke_width, stroke_opacity=stroke_opacity,
            pattern_id=pid, role="bar", item_id=item.id,
        )
    return Path(
        segments,
        fill=fill, fill_opacity=fill_opacity,
        stroke=item.border_color, stroke_width=stroke_width, stroke_opacity=stroke_opacity,
        pattern_id=pid, role="bar", item_id=item.id,
    )


def _value_label(bar: BarGeometry, style: StyleConfig, width: float, margins: Margins) -> Text:
    fs = style.value_label_font_size
    negative = bar.item.value < 0
    if style.is_horizontal:
        # horizontal bars always end on the right
        x = min(bar.x + bar.width + fs * 0.6 + 4 + style.value_label_offset_x, width - margins.right - 4)
        anchor = "start"
        y = bar.center + style.value_label_offset_y
        baseline = "middle"
    else:
        if negative:
            y = bar.y + bar.height + fs + 4 + style.value_label_offset_y
        else:
            y = bar.y - fs * 0.6 - 4 + style.value_label_offset_y
        y = max(y, fs)
        x = bar.center + style.value_label_offset_x
        anchor = "middle"
        baseline = "auto"
    return Text(
        x, y, format_value(bar.item.value),
        font_size=fs, fill=style.text_color, anchor=anchor, baseline=baseline,
        font_weight=500, role="value-label", item_id=bar.item.id,
    )


def _error_bar(bar: BarGeometry, style: StyleConfig, frame: OrientationFrame, mapping: AxisMapping) -> List[Line]:
    item = bar.item
    err = abs(_finite_or(item.error, 0.0))
    value = _finite_or(item.value, 0.0)
    a = mapping.to_pixel(value - err)
    b = mapping.to_pixel(value + err)
    lo, hi = min(a, b), max(a, b)
    if not style.show_error_bars or hi - lo <= MIN_ERROR_BAR_PX:
        return []

    color = item.border_color if style.error_bar_mode == "match" else style.error_bar_color
    stroke = max(style.error_bar_width, 0.0)
    half_cap = style.error_bar_cap_width / 2

    def line(c1: float, v1: float, c2: float, v2: float) -> Line:
        x1, y1 = frame.point(c1, v1)
        x2, y2 = frame.point(c2, v2)
        return Line(x1, y1, x2, y2, stroke=color, stroke_width=stroke, round_cap=True, role="error-bar", item_id=item.id)

    c = bar.center
    return [
        line(c, lo, c, hi),
        line(c - half_cap, lo, c + half_cap, lo),
        line(c - half_cap, hi, c + half_cap, hi),
    ]


def _headings(style: StyleConfig, width: float, margins: Margins) -> List[Text]:
    out: List[Text] = []
    gap = _heading_gap(style)
    title_y = margins.top - clamp(style.title_font_size * 0.75, 12, max(margins.top - 8, 12)) + style.title_offset_y
    if style.title:
        x = clamp(width / 2 + style.title_offset_x, margins.left, width - margins.right)
        out.append(Text(x, title_y, style.title, font_size=style.title_font_size, fill=style.text_color,
                        font_weight=700, role="title"))
    if style.subtitle:
        if style.title:
            base_y = title_y + style.title_font_size + gap
        else:
            base_y = margins.top - clamp(style.subtitle_font_size * 0.6, 10, max(margins.top - 8, 10))
        x = clamp(width / 2 + style.subtitle_offset_x, margins.left, width - margins.right)
        out.append(Text(x, base_y + style.subtitle_offset_y, style.subtitle, font_size=style.subtitle_font_size,
                        fill=style.text_color, role="subtitle"))
    return out


def _axis_titles(style: StyleConfig, height: float, bounds: PlotBounds, margins: Margins) -> List[Text]:
    out: List[Text] = []
    x_axis, y_axis = style.x_axis, style.y_axis
    if x_axis.title:
        fs = x_axis.title_font_size
        y = clamp(bounds.bottom + fs + 12 + x_axis.title_offset, fs, height - 8)
        out.append(Text((bounds.left + bounds.right) / 2, y, x_axis.title, font_size=fs,
                        fill=x_axis.axis_line_color, font_weight=500, role="x-title"))
    if y_axis.title:
        base_x = max(min(margins.left - 24, 80), 16)
        x = clamp(base_x + y_axis.title_offset, 8, margins.left + 160)
        out.append(Text(x, bounds.top + bounds.height / 2, y_axis.title, font_size=y_axis.title_font_size,
                        fill=y_axis.axis_line_color, rotation=-90.0, font_weight=500, role="y-title"))
    return out


def _tick_labels(
    style: StyleConfig,
    scale: TickScale,
    mapping: AxisMapping,
    bars: Sequence[BarGeometry],
    height: float,
    bounds: PlotBounds,
) -> List[Text]:
    x_axis, y_axis = style.x_axis, style.y_axis
    x_tick_y = min(bounds.bottom + x_axis.tick_font_size + 6, height - 4)

    def x_label(pos: float, text: str, role: str, item_id: Optional[str] = None) -> Text:
        return Text(pos + x_axis.tick_offset_x, x_tick_y + x_axis.tick_offset_y, text,
                    font_size=x_axis.tick_font_size, fill=x_axis.tick_label_color,
                    rotation=x_axis.tick_label_rotation, role=role, item_id=item_id)

    def y_label(pos: float, text: str, role: str, item_id: Optional[str] = None) -> Text:
        return Text(bounds.left - 10 + y_axis.tick_offset_x, pos + y_axis.tick_font_size / 3 + y_axis.tick_offset_y,
                    text, font_size=y_axis.tick_font_size, fill=y_axis.tick_label_color, anchor="end",
                    rotation=y_axis.tick_label_rotation, role=role, item_id=item_id)

    value_label, category_label = (x_label, y_label) if style.is_horizontal else (y_label, x_label)
    out: List[Text] = []
    if style.value_axis.show_tick_labels:
        out.extend(value_label(mapping.to_pixel(t), format_tick(t), "value-tick") for t in scale.ticks)
    if style.category_axis.show_tick_labels:
        out.extend(category_label(bar.center, bar.item.label, "category-tick", bar.item.id) for bar in bars)
    return out


def _annotations(style: StyleConfig, margins: Margins) -> List[Text]:
    # offsets are measured from the plot area's top-left corner
    return [
        Text(margins.left + _finite_or(a.x, 0.0), margins.top + _finite_or(a.y, 0.0), a.text,
             font_size=max(_finite_or(a.font_size, 16.0), 1.0), fill=a.color, anchor="start",
             rotation=_finite_or(a.rotation, 0.0), font_weight=700 if a.bold else 400,
             fill_opacity=clamp(_finite_or(a.opacity, 1.0), 0.0, 1.0), italic=a.italic,
             underline=a.underline, role="annotation", item_id=a.id)
        for a in style.annotations
        if a.text
    ]


def build_render_tree(state: ChartState, width: Optional[float] = None, height: Optional[float] = None) -> RenderTree:
    """
    Lay out the whole chart.

    Pure function of its arguments; hosts call it again on every state change.
    """
    style = state.style
    items = state.items
    if width is None or height is None:
        w, h = compute_canvas_size(style, width)
        width = w if width is None else width
        height = h if height is None else height
    width, height = float(width), float(height)

    margins = compute_margins(style, width, height)
    bounds = compute_plot_bounds(margins, width, height)
    frame = OrientationFrame(style.orientation, bounds)
    scale = resolve_value_scale(items, style)
    mapping = frame.value_mapping(scale.axis_min, scale.axis_max)
    bars = layout_bars(items, style, frame, mapping)

    patterns: List[PatternTile] = []
    for bar in bars:
        tile = tile_for_item(bar.item, bar.opacity)
        if tile is not None:
            patterns.append(tile)

    elements: List[Primitive] = [
        Rect(0.0, 0.0, width, height, fill=style.background_color, role="background"),
    ]
    elements.extend(_headings(style, width, margins))

    value_axis, category_axis = style.value_axis, style.category_axis
    if value_axis.show_grid_lines:
        elements.extend(_grid_line(frame.value_line(mapping.to_pixel(t)), value_axis, "value-grid") for t in scale.ticks)
    if category_axis.show_grid_lines and not style.is_horizontal:
        # separators between bands
        for bar in bars[1:]:
            elements.append(_grid_line(frame.category_line(bar.band_start), category_axis, "category-grid"))

    for bar in bars:
        elements.append(_bar_shape(bar, style))
        if style.show_value_labels:
            elements.append(_value_label(bar, style, width, margins))
        elements.extend(_error_bar(bar, style, frame, mapping))

    x_axis, y_axis = style.x_axis, style.y_axis
    if x_axis.show_axis_line:
        elements.append(Line(bounds.left, bounds.bottom, bounds.right, bounds.bottom,
                             stroke=x_axis.axis_line_color, stroke_width=x_axis.axis_line_width, role="x-axis"))
    if y_axis.show_axis_line:
        elements.append(Line(bounds.left, bounds.top, bounds.left, bounds.bottom,
                             stroke=y_axis.axis_line_color, stroke_width=y_axis.axis_line_width, role="y-axis"))

    elements.extend(_axis_titles(style, height, bounds, margins))
    elements.extend(_tick_labels(style, scale, mapping, bars, height, bounds))

    if style.show_plot_box:
        elements.append(Rect(bounds.left, bounds.top, bounds.width, bounds.height, fill=None,
                             stroke=style.plot_box_color, stroke_width=style.plot_box_line_width, role="plot-box"))

    elements.extend(_annotations(style, margins))

    return RenderTree(
        width=width,
        height=height,
        background_color=style.background_color,
        patterns=tuple(patterns),
        elements=tuple(elements),
    )


@lru_cache(maxsize=32)
def cached_render_tree(state: ChartState, width: Optional[float] = None, height: Optional[float] = None) -> RenderTree:
    # keyed only on what layout reads: items, style and canvas size
    return build_render_tree(state, width, height)
