"""Column role guessing, numeric parsing and row validation."""

from __future__ import annotations

import pytest

from barplot_studio.columns import (
    ColumnMapping,
    RowIssue,
    clamp_mapping,
    column_headers,
    find_row_issues,
    guess_mapping,
    parse_numeric,
)

pytestmark = pytest.mark.unit


def test_headers_from_the_first_row() -> None:
    rows = [[" Name ", "", "Score"], ["a", "b", "1"]]

    assert column_headers(rows, has_header=True) == ["Name", "Column 2", "Score"]


def test_headers_without_a_header_row_are_synthetic() -> None:
    rows = [["a", "1"], ["b", "2"]]

    assert column_headers(rows, has_header=False) == ["Column 1", "Column 2"]
    assert column_headers([], has_header=True) == []


def test_guess_name_score_error() -> None:
    assert guess_mapping(["Name", "Score", "Error"]) == ColumnMapping(label=0, value=1, error=2, group=None)


def test_guess_matches_substrings_case_insensitively() -> None:
    mapping = guess_mapping(["Series", "Total Sales", "Product Title", "StDev"])

    assert mapping == ColumnMapping(label=2, value=1, error=3, group=0)


def test_claimed_columns_are_not_reused() -> None:
    # "name" matches both; label claims the first
    mapping = guess_mapping(["first name", "last name"])

    assert mapping.label == 0
    assert mapping.value == 1


def test_fallback_to_first_free_columns() -> None:
    assert guess_mapping(["foo", "bar", "baz"]) == ColumnMapping(label=0, value=1)


def test_fallback_skips_claimed_columns() -> None:
    assert guess_mapping(["x", "Amount", "y"]) == ColumnMapping(label=0, value=1)
    assert guess_mapping(["Amount", "x"]) == ColumnMapping(label=1, value=0)


def test_single_column_leaves_value_unmapped() -> None:
    mapping = guess_mapping(["only"])

    assert mapping.label == 0
    assert mapping.value is None


def test_no_headers_no_mapping() -> None:
    assert guess_mapping([]) == ColumnMapping()


def test_clamp_mapping_drops_out_of_range_indices() -> None:
    mapping = ColumnMapping(label=0, value=3, error=-1, group=1)

    assert clamp_mapping(mapping, 2) == ColumnMapping(label=0, value=None, error=None, group=1)


@pytest.mark.parametrize(
    "text, decimal, expected",
    [
        ("1.234,5", ",", 1234.5),
        ("1,234.5", ".", 1234.5),
        (" 42 ", ".", 42.0),
        ("1 000", ".", 1000.0),
        ("-3.5", ".", -3.5),
        ("-3,5", ",", -3.5),
        ("1e3", ".", 1000.0),
        (".5", ".", 0.5),
        ("12 kg", ".", 12.0),
        ("45%", ".", 45.0),
        ("3.5e", ".", 3.5),
        ("1.2.3", ".", 1.2),
    ],
)
def test_parse_numeric(text: str, decimal: str, expected: float) -> None:
    parsed = parse_numeric(text, decimal)

    assert parsed.is_valid
    assert parsed.value == pytest.approx(expected)


@pytest.mark.parametrize("text", ["abc", "kg12", "nan", "inf", "1e999", "--2", "-", ".", "%5"])
def test_parse_numeric_rejects(text: str) -> None:
    parsed = parse_numeric(text, ".")

    assert not parsed.is_valid
    assert parsed.value is None


def test_blank_numbers() -> None:
    assert parse_numeric("  ", ".") == parse_numeric("", ".")
    assert not parse_numeric("", ".").is_valid
    assert parse_numeric("", ".", allow_blank=True).is_valid
    assert parse_numeric(None, ".", allow_blank=True).value is None


def test_find_row_issues() -> None:
    rows = [
        ["A", "1", ""],
        [" ", "2", "0.5"],
        ["C", "x", "bad"],
        ["D", "", "1"],
    ]

    issues = find_row_issues(rows, ColumnMapping(label=0, value=1, error=2))

    assert issues == [
        RowIssue("label", (2,)),
        RowIssue("value", (3, 4)),
        RowIssue("error", (3,)),
    ]


def test_find_row_issues_respects_the_decimal_separator() -> None:
    rows = [["A", "1,5"]]
    mapping = ColumnMapping(label=0, value=1)

    assert find_row_issues(rows, mapping, ",") == []
    # with a dot decimal the comma is a thousands separator, so "1,5" is 15
    assert find_row_issues(rows, mapping, ".") == []
    assert find_row_issues([["A", "1.2.3"]], mapping, ".") == [RowIssue("value", (1,))]


def test_unmapped_roles_are_not_checked() -> None:
    assert find_row_issues([["", "x"]], ColumnMapping()) == []
