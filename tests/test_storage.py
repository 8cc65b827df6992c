"""Persisted chart state."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from barplot_studio.data_model import AxisConfig, ChartState, StyleConfig, create_annotation, default_state, remove_item
from barplot_studio.storage import (
    STORAGE_KEY,
    clear_state,
    load_state,
    save_state,
    state_from_dict,
    state_to_dict,
)

pytestmark = pytest.mark.unit


def test_round_trip(state, state_path) -> None:
    items = (replace(state.items[0], pattern="dots", error=1.5, group="a"),) + state.items[1:]
    style = StyleConfig(
        orientation="horizontal",
        title="Saved",
        custom_width=800,
        x_axis=AxisConfig(title="V", max=50, tick_step=10),
        annotations=(create_annotation(text="Note", x=12.5, italic=True),),
    )
    original = ChartState(items=items, style=style)

    save_state(original, state_path)

    assert load_state(state_path) == original


def test_payload_shape(state) -> None:
    payload = state_to_dict(state)

    settings = payload[STORAGE_KEY]["settings"]
    assert settings["orientation"] == "vertical"
    assert [d["id"] for d in settings["data"]] == [i.id for i in state.items]
    assert settings["y_axis"]["min"] is None
    json.dumps(payload)


def test_missing_file_gives_defaults(tmp_path) -> None:
    state = load_state(tmp_path / "nope.json")

    assert len(state.items) == 4
    assert state.style == StyleConfig()


def test_corrupt_file_gives_defaults(state_path, caplog) -> None:
    state_path.write_text("{not json", encoding="utf-8")

    state = load_state(state_path)

    assert state.style == default_state().style
    assert "Failed to load saved chart state" in caplog.text


def test_mistyped_fields_are_defaulted() -> None:
    payload = {
        STORAGE_KEY: {
            "settings": {
                "orientation": "sideways",
                "bar_gap": "wide",
                "show_border": "yes",
                "title": 42,
                "palette_name": "neon",
                "x_axis": {"title": "Kinds", "max": "auto", "tick_step": "nope"},
                "y_axis": "broken",
                "data": [
                    {"label": "ok", "value": 7, "pattern": "zigzag", "opacity": None, "error": -2},
                    "junk",
                    {"value": "NaN", "pattern_size": 0.5},
                ],
            }
        }
    }

    state = state_from_dict(payload)
    defaults = StyleConfig()

    assert state.style.orientation == defaults.orientation
    assert state.style.bar_gap == defaults.bar_gap
    assert state.style.show_border is defaults.show_border
    assert state.style.title == defaults.title
    assert state.style.palette_name == "vibrant"
    assert state.style.x_axis.title == "Kinds"
    assert state.style.x_axis.max is None
    assert state.style.x_axis.tick_step is None
    assert state.style.y_axis == defaults.y_axis

    first, second = state.items
    assert first.label == "ok"
    assert first.value == 7
    assert first.pattern == "solid"
    assert first.opacity == 0.85
    assert first.error == 2
    assert second.value == 10
    assert second.pattern_size == 2
    assert first.id and second.id and first.id != second.id


def test_bare_settings_are_accepted(state) -> None:
    payload = state_to_dict(state)[STORAGE_KEY]

    assert state_from_dict(payload) == state
    assert state_from_dict(payload["settings"]) == state


def test_duplicate_ids_are_reassigned() -> None:
    payload = {"settings": {"data": [{"id": "same", "value": 1}, {"id": "same", "value": 2}]}}

    state = state_from_dict(payload)

    assert state.items[0].id == "same"
    assert state.items[1].id != "same"
    assert len(remove_item(state.items, "same")) == 1


def test_empty_data_gets_default_items() -> None:
    state = state_from_dict({"settings": {"data": []}})

    assert len(state.items) == 4


@pytest.mark.parametrize("payload", [None, [], "text", {"settings": "nope"}])
def test_unusable_payloads_give_defaults(payload) -> None:
    state = state_from_dict(payload)

    assert state.style == StyleConfig()
    assert state.items


def test_clear_state(state, state_path) -> None:
    save_state(state, state_path)

    clear_state(state_path)
    clear_state(state_path)

    assert not state_path.exists()


def test_annotations_are_merged_field_by_field() -> None:
    payload = {
        "settings": {
            "annotations": [
                {"id": "a", "text": "Peak", "x": 20, "bold": "yes", "opacity": 7, "font_size": None},
                "junk",
                {"id": "a", "rotation": 30},
                {"text": 5},
            ]
        }
    }

    notes = state_from_dict(payload).style.annotations

    assert len(notes) == 3
    peak, turned, plain = notes
    assert (peak.id, peak.text, peak.x) == ("a", "Peak", 20)
    assert peak.bold is False
    assert peak.opacity == 1
    assert peak.font_size == 16
    assert turned.rotation == 30
    assert turned.id not in ("a", "")
    assert plain.text == "New Text"
    assert len({n.id for n in notes}) == 3


def test_unusable_annotation_list_is_dropped() -> None:
    assert state_from_dict({"settings": {"annotations": "nope"}}).style.annotations == ()
