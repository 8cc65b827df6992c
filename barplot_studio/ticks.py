from __future__ import annotations

import math
import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

DEFAULT_TICK_COUNT = 6
MAX_TICKS = 1000


@dataclass(frozen=True)
class TickScale:
    ticks: Tuple[float, ...]
    axis_min: float
    axis_max: float


def nice_number(value: float, *, round_result: bool) -> float:
    """Snap value to {1, 2, 5, 10} x 10^k."""
    value = np.float64(value)
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def nice_spacing(lo: float, hi: float, count: int = DEFAULT_TICK_COUNT) -> float:
    nice_range = nice_number(abs(hi - lo), round_result=False)
    return nice_number(nice_range / max(count - 1, 1), round_result=True)


def _clean(value: float) -> float:
    # 12 significant digits hides accumulated float drift
    out = float(f"{value:.12g}")
    return 0.0 if out == 0 else out


def _walk(lo: float, hi: float, step: float, *, allow_past: bool) -> Optional[List[float]]:
    start = lo / step
    if not math.isfinite(start):
        return None
    first = math.ceil(start) * step
    limit = hi + step / 2 if allow_past else hi
    steps = (limit - first) / step
    if not math.isfinite(steps) or steps >= MAX_TICKS:
        return None
    n = int(np.floor(steps)) + 1
    if n <= 0:
        return []
    raw = first + np.arange(n, dtype=np.float64) * step
    return [_clean(float(v)) for v in raw]


def _close(a: float, b: float, step: float) -> bool:
    return abs(a - b) <= abs(step) * 1e-9


def _stepped_ticks(lo: float, hi: float, step: float, *, hi_is_explicit: bool) -> Optional[List[float]]:
    ticks = _walk(lo, hi, step, allow_past=not hi_is_explicit)
    if ticks is None:
        return None
    # exact bounds, so explicit settings survive untouched
    lo_c, hi_c = lo + 0.0, hi + 0.0
    if not ticks or (ticks[0] > lo_c and not _close(ticks[0], lo_c, step)):
        ticks.insert(0, lo_c)
    elif _close(ticks[0], lo_c, step):
        ticks[0] = lo_c
    if ticks[-1] < hi_c and not _close(ticks[-1], hi_c, step):
        ticks.append(hi_c)
    elif _close(ticks[-1], hi_c, step):
        ticks[-1] = hi_c

    out: List[float] = []
    for t in ticks:
        if not out or t > out[-1]:
            out.append(t)
    return out


def _bounds_only(lo: float, hi: float) -> TickScale:
    return TickScale(ticks=(lo + 0.0, hi + 0.0), axis_min=lo + 0.0, axis_max=hi + 0.0)


def generate_ticks(
    data_min: float,
    data_max: float,
    *,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    step: Optional[float] = None,
    count: int = DEFAULT_TICK_COUNT,
) -> TickScale:
    """
    Build the value-axis ticks and the plotted domain.

    Explicit min/max/step are honored verbatim. Bounds left as None are taken
    from the data and, on the automatic path, snapped outward to a multiple
    of a "nice" spacing, so the data always fits inside [axis_min, axis_max].
    """
    explicit_min = min_value is not None and math.isfinite(min_value)
    explicit_max = max_value is not None and math.isfinite(max_value)
    lo = float(min_value) if explicit_min else float(data_min)
    hi = float(max_value) if explicit_max else float(data_max)

    if not (math.isfinite(lo) and math.isfinite(hi)):
        return TickScale(ticks=(0.0, 1.0), axis_min=0.0, axis_max=1.0)
    if lo > hi:
        lo, hi = hi, lo
        explicit_min, explicit_max = explicit_max, explicit_min
    if lo == hi:
        pad = abs(lo) * 0.2 if lo != 0 else 1.0
        lo, hi = max(lo - pad, -sys.float_info.max), min(hi + pad, sys.float_info.max)
    if not math.isfinite(hi - lo):
        # span overflows a float: no room for intermediate ticks
        return _bounds_only(lo, hi)

    ticks: Optional[List[float]] = None
    if step is not None and math.isfinite(step) and step > 0:
        ticks = _stepped_ticks(lo, hi, float(step), hi_is_explicit=explicit_max)

    if ticks is None:
        with np.errstate(over="ignore", under="ignore", divide="ignore", invalid="ignore"):
            spacing = nice_spacing(lo, hi, count)
        if not (math.isfinite(spacing) and spacing > 0):
            return _bounds_only(lo, hi)
        snapped_lo = lo if explicit_min else math.floor(lo / spacing) * spacing
        snapped_hi = hi if explicit_max else math.ceil(hi / spacing) * spacing
        if math.isfinite(snapped_hi - snapped_lo):
            lo, hi = snapped_lo, snapped_hi
        ticks = _stepped_ticks(lo, hi, spacing, hi_is_explicit=True)

    if not ticks or len(ticks) < 2:
        ticks = [_clean(lo), _clean(hi)]
    return TickScale(ticks=tuple(ticks), axis_min=ticks[0], axis_max=ticks[-1])


def format_tick(value: float, *, grouping: str = ",", decimal: str = ".", max_fraction_digits: int = 2) -> str:
    if not math.isfinite(value):
        return str(value)
    out = f"{value:,.{max_fraction_digits}f}"
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out in ("-0", ""):
        out = "0"
    if grouping != "," or decimal != ".":
        out = out.replace(",", "\0").replace(".", decimal).replace("\0", grouping)
    return out


def format_value(value: float) -> str:
    """Bar value label text: integral floats lose their trailing '.0'."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    return repr(float(value))
