"""Tick generation and tick label formatting."""

from __future__ import annotations

import math

import pytest

from barplot_studio.ticks import format_tick, format_value, generate_ticks, nice_number, nice_spacing

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "lo, hi",
    [
        (0, 1),
        (0, 10),
        (-3.7, 12.2),
        (0.001, 0.0042),
        (-1e6, 5e5),
        (1234.5, 98765.4),
        (-42, -3),
        (5, 5),
        (0, 0),
        (-2, -2),
        (0, 1.7e308),
        (-1e308, 1e308),
        (1.7e308, 1.7e308),
        (0, 5e-324),
        (-1e-320, 1e-320),
    ],
)
def test_auto_ticks_are_ascending_and_cover_the_data(lo: float, hi: float) -> None:
    scale = generate_ticks(lo, hi)

    assert len(scale.ticks) >= 2
    assert all(a < b for a, b in zip(scale.ticks, scale.ticks[1:]))
    assert scale.ticks[0] <= lo
    assert scale.ticks[-1] >= hi
    assert scale.axis_min == scale.ticks[0]
    assert scale.axis_max == scale.ticks[-1]


def test_auto_ticks_snap_to_nice_spacing() -> None:
    assert generate_ticks(0, 10).ticks == (0, 2, 4, 6, 8, 10)
    assert generate_ticks(-3.7, 12.2).ticks == (-5, 0, 5, 10, 15)


def test_single_value_domain_is_widened() -> None:
    scale = generate_ticks(5, 5)

    assert len(set(scale.ticks)) >= 2
    assert scale.axis_min <= 4
    assert scale.axis_max >= 6


def test_zero_domain_is_widened_by_one() -> None:
    scale = generate_ticks(0, 0)

    assert scale.axis_min <= -1
    assert scale.axis_max >= 1


def test_reversed_bounds_are_swapped() -> None:
    assert generate_ticks(10, 0) == generate_ticks(0, 10)


def test_non_finite_input_falls_back_to_unit_range() -> None:
    scale = generate_ticks(math.nan, 4)

    assert scale.ticks == (0.0, 1.0)
    assert (scale.axis_min, scale.axis_max) == (0.0, 1.0)


def test_explicit_step_runs_past_auto_max() -> None:
    assert generate_ticks(0, 10, step=4).ticks == (0, 4, 8, 12)


def test_explicit_step_appends_auto_max_when_short() -> None:
    assert generate_ticks(0, 10, step=3).ticks == (0, 3, 6, 9, 10)


def test_explicit_step_and_max_stop_at_max() -> None:
    scale = generate_ticks(0, 10, max_value=10, step=4)

    assert scale.ticks == (0, 4, 8, 10)
    assert scale.axis_max == 10


def test_explicit_bounds_are_kept_verbatim() -> None:
    scale = generate_ticks(0, 10, min_value=1, max_value=9)

    assert scale.ticks == (1, 2, 4, 6, 8, 9)
    assert (scale.axis_min, scale.axis_max) == (1, 9)


def test_explicit_max_may_clip_data() -> None:
    scale = generate_ticks(0, 100, max_value=50)

    assert scale.axis_max == 50


def test_too_many_stepped_ticks_fall_back_to_auto() -> None:
    scale = generate_ticks(0, 1e6, step=1)

    assert len(scale.ticks) <= 12
    assert scale.ticks[-1] >= 1e6


def test_nonpositive_step_is_ignored() -> None:
    assert generate_ticks(0, 10, step=0) == generate_ticks(0, 10)
    assert generate_ticks(0, 10, step=-2) == generate_ticks(0, 10)


def test_nice_number() -> None:
    assert nice_number(0.8, round_result=True) == pytest.approx(1.0)
    assert nice_number(23, round_result=False) == pytest.approx(50)
    assert nice_number(23, round_result=True) == pytest.approx(20)
    assert nice_spacing(0, 10) == pytest.approx(2)


def test_format_tick() -> None:
    assert format_tick(1234.5) == "1,234.5"
    assert format_tick(2.0) == "2"
    assert format_tick(-0.0) == "0"
    assert format_tick(1 / 3) == "0.33"
    assert format_tick(-1500) == "-1,500"
    assert format_tick(1234.5, grouping=".", decimal=",") == "1.234,5"


def test_format_value() -> None:
    assert format_value(10.0) == "10"
    assert format_value(2.5) == "2.5"
    assert format_value(-3) == "-3"


def test_overflowing_step_count_falls_back_to_nice_spacing() -> None:
    scale = generate_ticks(0, 1e10, step=1e-300)

    assert scale.axis_min == 0
    assert scale.axis_max >= 1e10
    assert len(scale.ticks) < 20


def test_unrepresentable_span_keeps_only_the_bounds() -> None:
    scale = generate_ticks(-1e308, 1e308, step=1)

    assert scale.ticks == (-1e308, 1e308)


def test_tiny_step_on_huge_values_is_ignored() -> None:
    scale = generate_ticks(1e300, 2e300, step=1e-300)

    assert scale.axis_min <= 1e300
    assert scale.axis_max >= 2e300
