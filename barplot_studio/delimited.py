from __future__ import annotations

import csv
import io
from typing import List, Sequence

from .data_model import DataItem
from .ticks import format_value

DELIMITER_PRESETS = {
    "comma": ",",
    "semicolon": ";",
    "tab": "\t",
    "\\t": "\t",
    "pipe": "|",
    "space": " ",
}


def resolve_delimiter(preset: str, custom: str = "") -> str:
    """
    Turn a delimiter selection into the literal separator.

    `custom` returns the custom text as typed (possibly empty); anything that is
    not a named preset is used verbatim, so "," or ";" work too.
    """
    if preset == "custom":
        return custom
    return DELIMITER_PRESETS.get(preset, preset)


def _is_blank(row: Sequence[str]) -> bool:
    return all(cell == "" for cell in row)


def parse_delimited(text: str, delimiter: str) -> List[List[str]]:
    """
    Split delimited text into a rectangular table of strings.

    Quotes toggle quoting (a doubled quote inside quotes is a literal quote).
    Outside quotes, carriage returns are dropped, newlines end the row and the
    delimiter (any length) ends the field. Blank rows are dropped except the
    first one; short rows are padded with empty strings.
    """
    if not text.strip() or not delimiter:
        return []

    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quotes = False
    dlen = len(delimiter)
    i = 0
    n = len(text)

    def end_field() -> None:
        row.append("".join(field))
        field.clear()

    def end_row() -> None:
        nonlocal row
        end_field()
        if not _is_blank(row) or not rows:
            rows.append(row)
        row = []

    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    field.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                field.append(ch)
            i += 1
            continue

        if ch == '"':
            in_quotes = True
            i += 1
        elif ch == "\r":
            i += 1
        elif ch == "\n":
            end_row()
            i += 1
        elif text.startswith(delimiter, i):
            end_field()
            i += dlen
        else:
            field.append(ch)
            i += 1

    end_row()

    if not rows:
        return []
    width = max(len(r) for r in rows)
    return [r + [""] * (width - len(r)) for r in rows]


# -----------------------------
# CSV export of data items
# -----------------------------

ITEM_CSV_HEADER = ["label", "value", "error", "group"]


def _item_row(item: DataItem) -> List[str]:
    return [item.label, format_value(item.value), format_value(item.error), item.group or ""]


def write_items_csv(path: str, items: Sequence[DataItem], delimiter: str = ",") -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f, delimiter=delimiter)
        w.writerow(ITEM_CSV_HEADER)
        for item in items:
            w.writerow(_item_row(item))


def items_to_csv_string(items: Sequence[DataItem], delimiter: str = ",") -> str:
    buf = io.StringIO()
    w = csv.writer(buf, delimiter=delimiter, lineterminator="\n")
    w.writerow(ITEM_CSV_HEADER)
    for item in items:
        w.writerow(_item_row(item))
    return buf.getvalue().rstrip()
