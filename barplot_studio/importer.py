from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .columns import ColumnMapping, RowIssue, clamp_mapping, column_headers, find_row_issues, guess_mapping, parse_numeric
from .data_model import DEFAULT_PALETTE, DataItem, create_item
from .delimited import parse_delimited, resolve_delimiter

logger = logging.getLogger(__name__)

MAX_IMPORT_ROWS = 30
PREVIEW_ROWS = 6
MAX_LISTED_ROWS = 5

ISSUE_PREFIXES = {
    "label": "Missing names",
    "value": "Non-numeric values",
    "error": "Non-numeric errors",
    "group": "Group issues",
}


@dataclass(frozen=True)
class ImportOptions:
    # preset name ("comma", "tab", "custom", ...) or a literal separator
    delimiter: str = ","
    custom_delimiter: str = ""
    has_header: bool = True
    decimal_separator: str = "."

    @property
    def resolved_delimiter(self) -> str:
        return resolve_delimiter(self.delimiter, self.custom_delimiter)


@dataclass(frozen=True)
class ImportPreview:
    options: ImportOptions
    headers: Tuple[str, ...]
    # data rows kept for import (header excluded, capped)
    rows: Tuple[Tuple[str, ...], ...]
    total_rows: int
    truncated_rows: int
    mapping: ColumnMapping
    issues: Tuple[RowIssue, ...]
    messages: Tuple[str, ...]

    @property
    def can_import(self) -> bool:
        return not self.messages

    @property
    def preview_rows(self) -> Tuple[Tuple[str, ...], ...]:
        return self.rows[:PREVIEW_ROWS]


@dataclass(frozen=True)
class ImportResult:
    items: Tuple[DataItem, ...] = ()
    messages: Tuple[str, ...] = ()
    ignored_rows: int = 0

    @property
    def ok(self) -> bool:
        return not self.messages and bool(self.items)


def issue_message(issue: RowIssue) -> str:
    prefix = ISSUE_PREFIXES.get(issue.role, "Column issue")
    sample = ", ".join(str(n) for n in issue.rows[:MAX_LISTED_ROWS])
    suffix = "…" if len(issue.rows) > MAX_LISTED_ROWS else ""
    return f"{prefix} found in rows {sample}{suffix}"


def plan_import(text: str, options: ImportOptions = ImportOptions(), mapping: Optional[ColumnMapping] = None) -> ImportPreview:
    """
    Tokenize, map and validate imported text.

    Without an explicit mapping the roles are guessed from the headers; a
    given mapping is only clamped to the current column count.
    """
    delimiter = options.resolved_delimiter
    table = parse_delimited(text, delimiter)

    limit = MAX_IMPORT_ROWS + 1 if options.has_header else MAX_IMPORT_ROWS
    limited = table[:limit]
    total = max(len(table) - 1, 0) if options.has_header else len(table)
    kept = limited[1:] if options.has_header else limited
    truncated = max(total - len(kept), 0)

    headers = column_headers(limited, options.has_header)
    if not headers:
        mapping = ColumnMapping()
    elif mapping is None:
        mapping = guess_mapping(headers)
    else:
        mapping = clamp_mapping(mapping, len(headers))

    issues = find_row_issues(kept, mapping, options.decimal_separator) if headers else []

    messages: List[str] = []
    if options.delimiter == "custom" and not options.custom_delimiter:
        messages.append("Provide a custom separator.")
    if not text.strip():
        messages.append("The selected file appears to be empty.")
    elif not headers:
        messages.append("No columns were detected with the current separator.")
    if headers and mapping.label is None:
        messages.append("Choose a column to use for the bar names.")
    if headers and mapping.value is None:
        messages.append("Choose a column to use for the numeric values.")
    if headers and not kept:
        messages.append("No data rows detected to import.")
    messages.extend(issue_message(issue) for issue in issues)

    if truncated:
        logger.info("Import limited to %d rows, %d ignored", MAX_IMPORT_ROWS, truncated)

    return ImportPreview(
        options=options,
        headers=tuple(headers),
        rows=tuple(tuple(r) for r in kept),
        total_rows=total,
        truncated_rows=truncated,
        mapping=mapping,
        issues=tuple(issues),
        messages=tuple(messages),
    )


def _cell(row: Tuple[str, ...], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index]


def apply_import(preview: ImportPreview, palette_name: str = DEFAULT_PALETTE) -> ImportResult:
    """Build data items from a validated preview; refused outright on any message."""
    if not preview.can_import:
        return ImportResult(messages=preview.messages, ignored_rows=preview.truncated_rows)

    mapping = preview.mapping
    decimal = preview.options.decimal_separator
    items: List[DataItem] = []
    for index, row in enumerate(preview.rows):
        label = _cell(row, mapping.label).strip() or f"Item {index + 1}"
        value = parse_numeric(_cell(row, mapping.value), decimal).value or 0.0
        error = 0.0
        if mapping.error is not None:
            error = abs(parse_numeric(_cell(row, mapping.error), decimal, allow_blank=True).value or 0.0)
        group = _cell(row, mapping.group).strip() or None
        items.append(replace(create_item(index, palette_name), label=label, value=value, error=error, group=group))

    logger.debug("Imported %d items", len(items))
    return ImportResult(items=tuple(items), ignored_rows=preview.truncated_rows)


def import_text(
    text: str,
    options: ImportOptions = ImportOptions(),
    mapping: Optional[ColumnMapping] = None,
    palette_name: str = DEFAULT_PALETTE,
) -> ImportResult:
    return apply_import(plan_import(text, options, mapping), palette_name)
