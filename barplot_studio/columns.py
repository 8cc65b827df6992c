from __future__ import annotations

import math
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

ROLES: Tuple[str, ...] = ("label", "value", "error", "group")

ROLE_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "label": ("label", "name", "title"),
    "value": ("value", "amount", "score", "total", "count", "number"),
    "error": ("error", "err", "uncert", "sd", "stdev"),
    "group": ("group", "category", "series", "segment"),
}

_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_WS = re.compile(r"\s+")


@dataclass(frozen=True)
class ColumnMapping:
    label: Optional[int] = None
    value: Optional[int] = None
    error: Optional[int] = None
    group: Optional[int] = None

    def get(self, role: str) -> Optional[int]:
        return getattr(self, role)


@dataclass(frozen=True)
class NumericParse:
    value: Optional[float]
    is_valid: bool


@dataclass(frozen=True)
class RowIssue:
    role: str
    # 1-based data row numbers
    rows: Tuple[int, ...]


def column_headers(rows: Sequence[Sequence[str]], has_header: bool) -> List[str]:
    if not rows:
        return []
    first = rows[0]
    if not has_header:
        return [f"Column {i + 1}" for i in range(len(first))]
    return [cell.strip() or f"Column {i + 1}" for i, cell in enumerate(first)]


def guess_mapping(headers: Sequence[str]) -> ColumnMapping:
    """
    Assign roles to columns by header keywords.

    Roles are resolved in order; a claimed column leaves the pool. Label and
    value fall back to the first free columns, and value is never left equal
    to label.
    """
    if not headers:
        return ColumnMapping()
    names = [h.strip().lower() for h in headers]
    available = list(range(len(headers)))

    def take(keywords: Sequence[str]) -> Optional[int]:
        for keyword in keywords:
            for index in available:
                if keyword in names[index]:
                    available.remove(index)
                    return index
        return None

    guess: Dict[str, Optional[int]] = {role: take(ROLE_KEYWORDS[role]) for role in ROLES}

    if guess["label"] is None:
        guess["label"] = available.pop(0) if available else 0
    if guess["value"] is None and len(headers) >= 2:
        guess["value"] = available.pop(0) if available else 0
    if guess["value"] == guess["label"]:
        guess["value"] = available.pop(0) if available else None

    return ColumnMapping(**guess)


def clamp_mapping(mapping: ColumnMapping, column_count: int) -> ColumnMapping:
    def fit(index: Optional[int]) -> Optional[int]:
        if index is None or index < 0 or index >= column_count:
            return None
        return index

    return replace(
        mapping,
        label=fit(mapping.label),
        value=fit(mapping.value),
        error=fit(mapping.error),
        group=fit(mapping.group),
    )


def parse_numeric(text: Optional[str], decimal_separator: str = ".", allow_blank: bool = False) -> NumericParse:
    trimmed = (text or "").strip()
    if not trimmed:
        return NumericParse(None, allow_blank)

    normalized = _WS.sub("", trimmed)
    if decimal_separator == ",":
        normalized = normalized.replace(".", "").replace(",", ".")
    else:
        normalized = normalized.replace(",", "")

    # a leading number counts, so "45%" and "12kg" read as 45 and 12
    match = _NUMBER.match(normalized)
    if match is None:
        return NumericParse(None, False)
    value = float(match.group(0))
    if not math.isfinite(value):
        return NumericParse(None, False)
    return NumericParse(value, True)


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def find_row_issues(
    rows: Sequence[Sequence[str]],
    mapping: ColumnMapping,
    decimal_separator: str = ".",
) -> List[RowIssue]:
    """Validate data rows (header excluded) against the mapping."""
    issues: List[RowIssue] = []

    def collect(role: str, bad) -> None:
        index = mapping.get(role)
        if index is None:
            return
        flagged = tuple(n for n, row in enumerate(rows, start=1) if bad(_cell(row, index)))
        if flagged:
            issues.append(RowIssue(role, flagged))

    collect("label", lambda cell: not cell.strip())
    collect("value", lambda cell: not parse_numeric(cell, decimal_separator).is_valid)
    collect("error", lambda cell: not parse_numeric(cell, decimal_separator, allow_blank=True).is_valid)
    return issues
