"""Pattern tiles for non-solid bar fills."""

from __future__ import annotations

from dataclasses import replace

import pytest

from barplot_studio.data_model import create_item
from barplot_studio.patterns import build_pattern_tile, pattern_id, tile_for_item
from barplot_studio.primitives import Circle, Line

pytestmark = pytest.mark.unit


def tile(kind: str, size: float = 10.0):
    return build_pattern_tile(kind, size, "#ffffff", 0.5, "#3b82f6", 0.8, tile_id="t")


def test_solid_and_unknown_kinds_have_no_tile() -> None:
    assert tile("solid") is None
    assert tile("zigzag") is None


def test_background_covers_the_tile() -> None:
    t = tile("diagonal", 12)

    assert t.size == 12
    assert (t.background.width, t.background.height) == (12, 12)
    assert t.background.fill == "#3b82f6"
    assert t.background.fill_opacity == 0.8


def test_diagonal_has_three_primary_strokes() -> None:
    t = tile("diagonal", 10)

    assert len(t.accents) == 3
    assert all(isinstance(a, Line) for a in t.accents)
    assert all(a.stroke_width == pytest.approx(1.8) for a in t.accents)
    assert all(a.stroke_opacity == 0.5 for a in t.accents)


def test_dots_sit_in_opposite_corners() -> None:
    t = tile("dots", 8)

    assert len(t.accents) == 2
    a, b = t.accents
    assert isinstance(a, Circle)
    assert (a.cx, a.cy) == (3, 3)
    assert (b.cx, b.cy) == (5, 5)
    assert a.r == pytest.approx(1.6)


def test_crosshatch_uses_secondary_strokes_through_the_center() -> None:
    t = tile("crosshatch", 10)

    horizontal, vertical = t.accents
    assert (horizontal.y1, horizontal.y2) == (5, 5)
    assert (vertical.x1, vertical.x2) == (5, 5)
    assert horizontal.stroke_width == pytest.approx(1.4)


def test_vertical_strokes_sit_a_quarter_in() -> None:
    t = tile("vertical", 8)

    assert [a.x1 for a in t.accents] == [2, 6]


def test_stroke_widths_scale_with_tile_size() -> None:
    small = tile("vertical", 10).accents[0].stroke_width
    large = tile("vertical", 40).accents[0].stroke_width

    assert large == pytest.approx(small * 4)


def test_small_tiles_hit_the_minimums() -> None:
    t = tile("dots", 1)

    assert t.size == 2
    assert t.accents[0].r == 1
    assert tile("diagonal", 2).accents[0].stroke_width == 0.75


def test_tile_for_item_uses_the_item_fields() -> None:
    item = replace(create_item(0), pattern="crosshatch", pattern_color="#000000", pattern_size=6)

    t = tile_for_item(item, 0.4)

    assert t.id == pattern_id(item.id) == f"pattern-{item.id}"
    assert t.size == 6
    assert t.background.fill == item.fill_color
    assert t.background.fill_opacity == 0.4
    assert t.accents[0].stroke == "#000000"
