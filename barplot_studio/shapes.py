from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import numpy as np

from .primitives import PathSegments, Segment

Point = Tuple[float, float]


def _frame(x: float, y: float, width: float, height: float, orientation: str) -> Tuple[float, float, Callable[[float, float], Point]]:
    """
    Local bar frame: `a` runs across the bar, `b` runs from the rounded
    (far) end back toward the base. Returns (thickness, length, to_xy).
    """
    if orientation == "horizontal":
        # far end is the right edge
        return height, width, lambda a, b: (x + width - b, y + a)
    return width, height, lambda a, b: (x + a, y + b)


def clamp_radius(radius: float, width: float, height: float) -> float:
    return max(min(radius, width / 2, height / 2), 0.0)


def build_bar_path(
    x: float,
    y: float,
    width: float,
    height: float,
    radius: float,
    style: str = "top",
    orientation: str = "vertical",
) -> Optional[PathSegments]:
    """
    Rounded bar outline. Returns None when the clamped radius is zero so the
    caller can emit a plain rectangle instead.

    Corners are quadratic curves whose control point is the rectangle corner
    itself, which only approximates a circular arc.
    """
    r = clamp_radius(radius, width, height)
    if r == 0:
        return None

    t, length, to_xy = _frame(x, y, width, height, orientation)

    def m(a: float, b: float) -> Segment:
        return ("M",) + to_xy(a, b)

    def l(a: float, b: float) -> Segment:
        return ("L",) + to_xy(a, b)

    def q(ca: float, cb: float, a: float, b: float) -> Segment:
        return ("Q",) + to_xy(ca, cb) + to_xy(a, b)

    if style == "both":
        return (
            m(r, 0),
            l(t - r, 0),
            q(t, 0, t, r),
            l(t, length - r),
            q(t, length, t - r, length),
            l(r, length),
            q(0, length, 0, length - r),
            l(0, r),
            q(0, 0, r, 0),
            ("Z",),
        )

    return (
        m(0, r),
        q(0, 0, r, 0),
        l(t - r, 0),
        q(t, 0, t, r),
        l(t, length),
        l(0, length),
        ("Z",),
    )


def _num(v: float) -> str:
    return f"{float(v):.4f}".rstrip("0").rstrip(".")


def path_to_svg(segments: PathSegments) -> str:
    parts: List[str] = []
    for seg in segments:
        cmd = seg[0]
        parts.append(" ".join([cmd] + [_num(v) for v in seg[1:]]))
    return " ".join(parts)


def flatten_path(segments: PathSegments, steps: int = 8) -> List[Point]:
    """Approximate the path with a polygon (quadratics sampled `steps` times)."""
    pts: List[Point] = []
    cur: Point = (0.0, 0.0)
    t = np.linspace(0.0, 1.0, max(int(steps), 1) + 1)[1:]
    for seg in segments:
        cmd = seg[0]
        if cmd in ("M", "L"):
            cur = (float(seg[1]), float(seg[2]))
            pts.append(cur)
        elif cmd == "Q":
            p0 = np.asarray(cur)
            c = np.asarray(seg[1:3], dtype=np.float64)
            p1 = np.asarray(seg[3:5], dtype=np.float64)
            u = (1.0 - t)[:, None]
            tt = t[:, None]
            curve = u * u * p0 + 2.0 * u * tt * c + tt * tt * p1
            pts.extend((float(px), float(py)) for px, py in curve)
            cur = (float(p1[0]), float(p1[1]))
    return pts
