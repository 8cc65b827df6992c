"""Delimited text tokenizer and CSV writer."""

from __future__ import annotations

import csv
from dataclasses import replace

import pytest

from barplot_studio.data_model import create_item
from barplot_studio.delimited import items_to_csv_string, parse_delimited, resolve_delimiter, write_items_csv

pytestmark = pytest.mark.unit


def test_quoted_fields_keep_delimiters() -> None:
    assert parse_delimited('a,"b,c",d', ",") == [["a", "b,c", "d"]]


def test_empty_fields_are_kept() -> None:
    assert parse_delimited("a,,b", ",") == [["a", "", "b"]]


def test_empty_text_or_delimiter_gives_no_rows() -> None:
    assert parse_delimited("", ",") == []
    assert parse_delimited("  \n ", ",") == []
    assert parse_delimited("a,b", "") == []


def test_ragged_rows_are_padded() -> None:
    assert parse_delimited("a,b\nc", ",") == [["a", "b"], ["c", ""]]


def test_doubled_quotes_are_literal() -> None:
    assert parse_delimited('"say ""hi""",x', ",") == [['say "hi"', "x"]]


def test_newlines_inside_quotes_stay_in_the_field() -> None:
    assert parse_delimited('"one\ntwo",3\nx,4', ",") == [["one\ntwo", "3"], ["x", "4"]]


def test_carriage_returns_are_dropped() -> None:
    assert parse_delimited("a,1\r\nb,2\r\n", ",") == [["a", "1"], ["b", "2"]]


def test_blank_rows_are_dropped_except_the_first() -> None:
    assert parse_delimited("a,1\n\n,\nb,2\n", ",") == [["a", "1"], ["b", "2"]]
    assert parse_delimited(",\na,1", ",") == [["", ""], ["a", "1"]]


def test_multi_character_delimiters() -> None:
    assert parse_delimited("a::b::c\nd::e", "::") == [["a", "b", "c"], ["d", "e", ""]]


def test_tab_delimiter() -> None:
    assert parse_delimited("name\tvalue\nA\t3", "\t") == [["name", "value"], ["A", "3"]]


@pytest.mark.parametrize(
    "preset, expected",
    [
        ("comma", ","),
        (",", ","),
        (";", ";"),
        ("tab", "\t"),
        ("\\t", "\t"),
        ("pipe", "|"),
        ("space", " "),
    ],
)
def test_resolve_delimiter(preset: str, expected: str) -> None:
    assert resolve_delimiter(preset) == expected


def test_resolve_custom_delimiter() -> None:
    assert resolve_delimiter("custom", "::") == "::"
    assert resolve_delimiter("custom") == ""


def test_items_to_csv_string() -> None:
    items = (
        replace(create_item(0), label="Apples", value=3.0, error=0.5, group="fruit"),
        replace(create_item(1), label="Big, heavy", value=12.0),
    )

    text = items_to_csv_string(items)

    assert text.splitlines() == [
        "label,value,error,group",
        "Apples,3,0.5,fruit",
        '"Big, heavy",12,0,',
    ]
    assert parse_delimited(text, ",")[2] == ["Big, heavy", "12", "0", ""]


def test_write_items_csv(tmp_path) -> None:
    path = tmp_path / "items.csv"
    items = (replace(create_item(0), label="A", value=-2.0),)

    write_items_csv(str(path), items, delimiter=";")

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f, delimiter=";"))
    assert rows == [["label", "value", "error", "group"], ["A", "-2", "0", ""]]
