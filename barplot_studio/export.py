from __future__ import annotations

import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from .primitives import Circle, Line, Path as PathShape, PatternTile, Primitive, Rect, RenderTree, Text
from .scales import clamp
from .shapes import flatten_path, path_to_svg

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("svg", "png", "pdf")
MIN_EXPORT_SCALE = 1.0
MAX_EXPORT_SCALE = 6.0
FONT_FAMILY = "Inter, system-ui, sans-serif"
FONT_FILE = "DejaVuSans.ttf"

Point = Tuple[float, float]


def _fmt(v: float) -> str:
    return f"{float(v):.3f}".rstrip("0").rstrip(".")


# -----------------------------
# SVG
# -----------------------------

def _svg_paint(el: ET.Element, prefix: str, color: Optional[str], opacity: float) -> None:
    el.set(prefix, color or "none")
    if color and opacity < 1:
        el.set(f"{prefix}-opacity", _fmt(opacity))


def _svg_line(parent: ET.Element, line: Line) -> ET.Element:
    el = ET.SubElement(parent, "line", {
        "x1": _fmt(line.x1), "y1": _fmt(line.y1), "x2": _fmt(line.x2), "y2": _fmt(line.y2),
        "stroke-width": _fmt(line.stroke_width),
    })
    _svg_paint(el, "stroke", line.stroke, line.stroke_opacity)
    if line.dash:
        el.set("stroke-dasharray", " ".join(_fmt(d) for d in line.dash))
    if line.round_cap:
        el.set("stroke-linecap", "round")
    return el


def _svg_circle(parent: ET.Element, c: Circle) -> ET.Element:
    el = ET.SubElement(parent, "circle", {"cx": _fmt(c.cx), "cy": _fmt(c.cy), "r": _fmt(c.r)})
    _svg_paint(el, "fill", c.fill, c.fill_opacity)
    return el


def _svg_fill(el: ET.Element, shape) -> None:
    if shape.pattern_id:
        el.set("fill", f"url(#{shape.pattern_id})")
    else:
        _svg_paint(el, "fill", shape.fill, shape.fill_opacity)
    if shape.stroke and shape.stroke_width > 0 and shape.stroke_opacity > 0:
        _svg_paint(el, "stroke", shape.stroke, shape.stroke_opacity)
        el.set("stroke-width", _fmt(shape.stroke_width))


def _svg_pattern(defs: ET.Element, tile: PatternTile) -> None:
    el = ET.SubElement(defs, "pattern", {
        "id": tile.id,
        "patternUnits": "userSpaceOnUse",
        "width": _fmt(tile.size),
        "height": _fmt(tile.size),
    })
    bg = ET.SubElement(el, "rect", {"width": _fmt(tile.size), "height": _fmt(tile.size)})
    _svg_paint(bg, "fill", tile.background.fill, tile.background.fill_opacity)
    for accent in tile.accents:
        if isinstance(accent, Circle):
            _svg_circle(el, accent)
        else:
            _svg_line(el, accent)


def _svg_text(parent: ET.Element, t: Text) -> None:
    el = ET.SubElement(parent, "text", {
        "x": _fmt(t.x),
        "y": _fmt(t.y),
        "font-size": _fmt(t.font_size),
        "font-family": FONT_FAMILY,
        "text-anchor": t.anchor,
    })
    _svg_paint(el, "fill", t.fill, t.fill_opacity)
    if t.baseline == "middle":
        el.set("dominant-baseline", "middle")
    if t.font_weight != 400:
        el.set("font-weight", str(t.font_weight))
    if t.italic:
        el.set("font-style", "italic")
    if t.underline:
        el.set("text-decoration", "underline")
    if t.rotation:
        el.set("transform", f"rotate({_fmt(t.rotation)} {_fmt(t.x)} {_fmt(t.y)})")
    el.text = t.text


def render_svg(tree: RenderTree, transparent: bool = False) -> str:
    root = ET.Element("svg", {
        "xmlns": "http://www.w3.org/2000/svg",
        "width": _fmt(tree.width),
        "height": _fmt(tree.height),
        "viewBox": f"0 0 {_fmt(tree.width)} {_fmt(tree.height)}",
    })
    if tree.patterns:
        defs = ET.SubElement(root, "defs")
        for tile in tree.patterns:
            _svg_pattern(defs, tile)

    for prim in tree.elements:
        if transparent and getattr(prim, "role", "") == "background":
            continue
        if isinstance(prim, Rect):
            el = ET.SubElement(root, "rect", {
                "x": _fmt(prim.x), "y": _fmt(prim.y), "width": _fmt(prim.width), "height": _fmt(prim.height),
            })
            _svg_fill(el, prim)
        elif isinstance(prim, PathShape):
            el = ET.SubElement(root, "path", {"d": path_to_svg(prim.segments)})
            _svg_fill(el, prim)
        elif isinstance(prim, Line):
            _svg_line(root, prim)
        elif isinstance(prim, Circle):
            _svg_circle(root, prim)
        elif isinstance(prim, Text):
            _svg_text(root, prim)

    return ET.tostring(root, encoding="unicode")


# -----------------------------
# Raster (Pillow)
# -----------------------------

def _rgba(color: Optional[str], opacity: float = 1.0) -> Tuple[int, int, int, int]:
    if not color:
        return (0, 0, 0, 0)
    r, g, b = ImageColor.getrgb(color)[:3]
    return (r, g, b, int(round(clamp(opacity, 0.0, 1.0) * 255)))


_font_cache: Dict[int, ImageFont.ImageFont] = {}


def _font(size: float):
    px = max(int(round(size)), 1)
    font = _font_cache.get(px)
    if font is None:
        try:
            font = ImageFont.truetype(FONT_FILE, px)
        except OSError:
            font = ImageFont.load_default(size=px)
        _font_cache[px] = font
    return font


def _dash_segments(p1: Point, p2: Point, dash: Sequence[float]) -> List[Tuple[Point, Point]]:
    """Split a line into its visible dash pieces."""
    a = np.asarray(p1, dtype=np.float64)
    b = np.asarray(p2, dtype=np.float64)
    length = float(np.hypot(*(b - a)))
    period = float(sum(dash))
    if length == 0 or period <= 0:
        return [(p1, p2)]
    unit = (b - a) / length
    out: List[Tuple[Point, Point]] = []
    pos = 0.0
    on = True
    i = 0
    while pos < length:
        seg = dash[i % len(dash)]
        end = min(pos + seg, length)
        if on:
            s, e = a + unit * pos, a + unit * end
            out.append(((float(s[0]), float(s[1])), (float(e[0]), float(e[1]))))
        pos = end
        on = not on
        i += 1
    return out


class _Painter:
    """Draws render-tree primitives onto an RGBA canvas at a fixed scale."""

    def __init__(self, size: Tuple[int, int], scale: float, patterns: Dict[str, PatternTile]) -> None:
        self.image = Image.new("RGBA", size, (0, 0, 0, 0))
        self.scale = scale
        self.patterns = patterns
        self._tiles: Dict[str, Image.Image] = {}

    def _layer(self, draw_fn: Callable[[ImageDraw.ImageDraw], None]) -> None:
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        draw_fn(ImageDraw.Draw(layer))
        self.image = Image.alpha_composite(self.image, layer)

    def _pt(self, x: float, y: float) -> Point:
        return x * self.scale, y * self.scale

    def _width(self, w: float) -> int:
        return max(int(round(w * self.scale)), 1)

    # -- pattern fills

    def _tile_image(self, tile: PatternTile) -> Image.Image:
        img = self._tiles.get(tile.id)
        if img is not None:
            return img
        px = max(int(round(tile.size * self.scale)), 1)
        img = Image.new("RGBA", (px, px), _rgba(tile.background.fill, tile.background.fill_opacity))
        accents = Image.new("RGBA", (px, px), (0, 0, 0, 0))
        d = ImageDraw.Draw(accents)
        for accent in tile.accents:
            if isinstance(accent, Circle):
                cx, cy = self._pt(accent.cx, accent.cy)
                r = accent.r * self.scale
                d.ellipse([cx - r, cy - r, cx + r, cy + r], fill=_rgba(accent.fill, accent.fill_opacity))
            else:
                d.line([self._pt(accent.x1, accent.y1), self._pt(accent.x2, accent.y2)],
                       fill=_rgba(accent.stroke, accent.stroke_opacity), width=self._width(accent.stroke_width))
        img = Image.alpha_composite(img, accents)
        self._tiles[tile.id] = img
        return img

    def _fill_pattern(self, polygon: List[Point], tile: PatternTile) -> None:
        tile_img = self._tile_image(tile)
        tw, th = tile_img.size
        xs = [p[0] for p in polygon]
        ys = [p[1] for p in polygon]
        # tiles are anchored at the canvas origin, like userSpaceOnUse
        x0 = int(math.floor(min(xs) / tw)) * tw
        y0 = int(math.floor(min(ys) / th)) * th
        tiled = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        for ty in range(y0, int(math.ceil(max(ys))), th):
            for tx in range(x0, int(math.ceil(max(xs))), tw):
                tiled.paste(tile_img, (tx, ty))
        mask = Image.new("L", self.image.size, 0)
        ImageDraw.Draw(mask).polygon(polygon, fill=255)
        layer = Image.composite(tiled, Image.new("RGBA", self.image.size, (0, 0, 0, 0)), mask)
        self.image = Image.alpha_composite(self.image, layer)

    # -- primitives

    def shape(self, polygon: List[Point], prim) -> None:
        tile = self.patterns.get(prim.pattern_id) if prim.pattern_id else None
        if tile is not None:
            self._fill_pattern(polygon, tile)
        elif prim.fill:
            self._layer(lambda d: d.polygon(polygon, fill=_rgba(prim.fill, prim.fill_opacity)))
        if prim.stroke and prim.stroke_width > 0 and prim.stroke_opacity > 0:
            outline = polygon + [polygon[0]]
            color = _rgba(prim.stroke, prim.stroke_opacity)
            width = self._width(prim.stroke_width)
            self._layer(lambda d: d.line(outline, fill=color, width=width, joint="curve"))

    def rect(self, r: Rect) -> None:
        x0, y0 = self._pt(r.x, r.y)
        x1, y1 = self._pt(r.x + r.width, r.y + r.height)
        self.shape([(x0, y0), (x1, y0), (x1, y1), (x0, y1)], r)

    def path(self, p: PathShape) -> None:
        self.shape([self._pt(x, y) for x, y in flatten_path(p.segments)], p)

    def line(self, ln: Line) -> None:
        p1, p2 = self._pt(ln.x1, ln.y1), self._pt(ln.x2, ln.y2)
        pieces = _dash_segments(p1, p2, [d * self.scale for d in ln.dash]) if ln.dash else [(p1, p2)]
        color = _rgba(ln.stroke, ln.stroke_opacity)
        width = self._width(ln.stroke_width)

        def draw(d: ImageDraw.ImageDraw) -> None:
            for a, b in pieces:
                d.line([a, b], fill=color, width=width)
                if ln.round_cap:
                    r = width / 2
                    for cx, cy in (a, b):
                        d.ellipse([cx - r, cy - r, cx + r, cy + r], fill=color)

        self._layer(draw)

    def circle(self, c: Circle) -> None:
        cx, cy = self._pt(c.cx, c.cy)
        r = c.r * self.scale
        self._layer(lambda d: d.ellipse([cx - r, cy - r, cx + r, cy + r], fill=_rgba(c.fill, c.fill_opacity)))

    def text(self, t: Text) -> None:
        x, y = self._pt(t.x, t.y)
        anchor = {"start": "l", "middle": "m", "end": "r"}.get(t.anchor, "m")
        anchor += "m" if t.baseline == "middle" else "s"
        font = _font(t.font_size * self.scale)
        fill = _rgba(t.fill, t.fill_opacity)
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        draw.text((x, y), t.text, fill=fill, font=font, anchor=anchor)
        if t.underline and t.text:
            left, _, right, bottom = draw.textbbox((x, y), t.text, font=font, anchor=anchor)
            draw.line([(left, bottom + self.scale), (right, bottom + self.scale)], fill=fill, width=max(int(self.scale), 1))
        if t.rotation:
            # screen-space rotation is clockwise; Pillow's is counter-clockwise
            layer = layer.rotate(-t.rotation, resample=Image.BICUBIC, center=(x, y))
        self.image = Image.alpha_composite(self.image, layer)

    def draw(self, prim: Primitive) -> None:
        if isinstance(prim, Rect):
            self.rect(prim)
        elif isinstance(prim, PathShape):
            self.path(prim)
        elif isinstance(prim, Line):
            self.line(prim)
        elif isinstance(prim, Circle):
            self.circle(prim)
        elif isinstance(prim, Text):
            self.text(prim)


def clamp_scale(scale: float) -> float:
    if not isinstance(scale, (int, float)) or not math.isfinite(scale):
        return MIN_EXPORT_SCALE
    return clamp(float(scale), MIN_EXPORT_SCALE, MAX_EXPORT_SCALE)


def render_image(tree: RenderTree, scale: float = 1.0, transparent: bool = False) -> Image.Image:
    scale = clamp_scale(scale)
    size = (max(int(round(tree.width * scale)), 1), max(int(round(tree.height * scale)), 1))
    painter = _Painter(size, scale, {tile.id: tile for tile in tree.patterns})
    for prim in tree.elements:
        if transparent and getattr(prim, "role", "") == "background":
            continue
        painter.draw(prim)
    return painter.image


def export_chart(
    tree: RenderTree,
    path,
    fmt: Optional[str] = None,
    scale: float = 2.0,
    transparent: bool = False,
) -> Path:
    path = Path(path)
    fmt = (fmt or path.suffix.lstrip(".") or "png").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    if path.suffix.lower() != f".{fmt}":
        path = path.with_suffix(f".{fmt}")

    if fmt == "svg":
        path.write_text(render_svg(tree, transparent), encoding="utf-8")
    else:
        scale = clamp_scale(scale)
        img = render_image(tree, scale, transparent)
        if fmt == "png":
            img.save(path, "PNG")
        else:
            # PDF has no alpha channel
            background = Image.new("RGB", img.size, "white")
            background.paste(img, mask=img.split()[3])
            background.save(path, "PDF", resolution=72.0 * scale)
    logger.info("Exported chart to %s", path)
    return path
