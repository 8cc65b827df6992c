from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .data_model import (
    CORNER_STYLES,
    DEFAULT_PALETTE,
    ERROR_BAR_MODES,
    GRID_LINE_STYLES,
    MIN_PATTERN_SIZE,
    ORIENTATIONS,
    PALETTES,
    PATTERNS,
    AxisConfig,
    ChartState,
    DataItem,
    StyleConfig,
    TextAnnotation,
    create_annotation,
    create_item,
    default_state,
    new_item_id,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "barplot-studio-state-v1"
STATE_PATH = Path.home() / ".barplot_studio_state.json"

# fields restricted to a fixed set of strings
_CHOICES = {
    "orientation": ORIENTATIONS,
    "bar_corner_style": CORNER_STYLES,
    "error_bar_mode": ERROR_BAR_MODES,
    "grid_line_style": GRID_LINE_STYLES,
    "pattern": PATTERNS,
}

# Optional[float] fields where None means "auto" / "unset"
_OPTIONAL_NUMBERS = {"min", "max", "tick_step", "custom_width", "custom_height"}


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and math.isfinite(v)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Return raw when it has the shape of the default, else the default."""
    if name in _OPTIONAL_NUMBERS:
        if raw is None or raw == "auto":
            return None
        return float(raw) if _is_number(raw) else default
    if name in _CHOICES:
        return raw if raw in _CHOICES[name] else default
    if isinstance(default, bool):
        return raw if isinstance(raw, bool) else default
    if isinstance(default, (int, float)):
        return float(raw) if _is_number(raw) else default
    if isinstance(default, str):
        return raw if isinstance(raw, str) else default
    if default is None:
        return raw if isinstance(raw, str) and raw else None
    return default


def _merge(defaults, data: Any, skip=()):
    if not isinstance(data, dict):
        return defaults
    changes: Dict[str, Any] = {}
    for f in fields(defaults):
        if f.name in skip or f.name not in data:
            continue
        changes[f.name] = _coerce(f.name, data[f.name], getattr(defaults, f.name))
    return replace(defaults, **changes)


# -----------------------------
# Dict conversion
# -----------------------------

def axis_from_dict(data: Any, defaults: AxisConfig) -> AxisConfig:
    return _merge(defaults, data)


def item_from_dict(data: Any, index: int, palette_name: str = DEFAULT_PALETTE) -> DataItem:
    item = _merge(create_item(index, palette_name), data)
    if not item.id:
        item = replace(item, id=new_item_id())
    return replace(item, error=abs(item.error), pattern_size=max(item.pattern_size, MIN_PATTERN_SIZE))


def annotation_from_dict(data: Any) -> TextAnnotation:
    annotation = _merge(create_annotation(), data)
    if not annotation.id:
        annotation = replace(annotation, id=new_item_id())
    return replace(annotation, opacity=min(max(annotation.opacity, 0.0), 1.0))


def _annotations_from_list(data: Any) -> Tuple[TextAnnotation, ...]:
    if not isinstance(data, list):
        return ()
    out: List[TextAnnotation] = []
    seen = set()
    for raw in data:
        if not isinstance(raw, dict):
            continue
        annotation = annotation_from_dict(raw)
        if annotation.id in seen:
            annotation = replace(annotation, id=new_item_id())
        seen.add(annotation.id)
        out.append(annotation)
    return tuple(out)


def style_from_dict(data: Any) -> StyleConfig:
    defaults = StyleConfig()
    style = _merge(defaults, data, skip=("x_axis", "y_axis", "annotations"))
    if not isinstance(data, dict):
        return style
    if style.palette_name not in PALETTES:
        style = replace(style, palette_name=DEFAULT_PALETTE)
    return replace(
        style,
        x_axis=axis_from_dict(data.get("x_axis"), defaults.x_axis),
        y_axis=axis_from_dict(data.get("y_axis"), defaults.y_axis),
        annotations=_annotations_from_list(data.get("annotations")),
    )


def state_from_dict(payload: Any) -> ChartState:
    """
    Rebuild a ChartState from an untrusted payload.

    Accepts the versioned envelope, a bare {"settings": ...} or the settings
    dict itself. Every field is checked against its default's type.
    """
    if isinstance(payload, dict) and STORAGE_KEY in payload:
        payload = payload[STORAGE_KEY]
    settings = payload.get("settings", payload) if isinstance(payload, dict) else None
    if not isinstance(settings, dict):
        return default_state()

    style = style_from_dict(settings)
    raw_items = settings.get("data")
    items: List[DataItem] = []
    if isinstance(raw_items, list):
        seen = set()
        for i, d in enumerate(raw_items):
            if not isinstance(d, dict):
                continue
            item = item_from_dict(d, i, style.palette_name)
            # ids identify items for edits, so duplicates get a fresh one
            if item.id in seen:
                item = replace(item, id=new_item_id())
            seen.add(item.id)
            items.append(item)
    if not items:
        items = list(default_state(palette_name=style.palette_name).items)
    return ChartState(items=tuple(items), style=style)


def state_to_dict(state: ChartState) -> Dict[str, Any]:
    settings = asdict(state.style)
    settings["data"] = [asdict(item) for item in state.items]
    return {STORAGE_KEY: {"settings": settings}}


# -----------------------------
# Persistence
# -----------------------------

def load_state(path: Optional[Path] = None) -> ChartState:
    path = Path(path) if path is not None else STATE_PATH
    if not path.exists():
        return default_state()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load saved chart state from %s: %s", path, e)
        return default_state()
    return state_from_dict(data)


def save_state(state: ChartState, path: Optional[Path] = None) -> None:
    path = Path(path) if path is not None else STATE_PATH
    path.write_text(json.dumps(state_to_dict(state), indent=2), encoding="utf-8")


def clear_state(path: Optional[Path] = None) -> None:
    path = Path(path) if path is not None else STATE_PATH
    try:
        path.unlink()
    except FileNotFoundError:
        pass
