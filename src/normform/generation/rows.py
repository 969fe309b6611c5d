"""Row helpers: blank detection and deduplication."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from normform.schema.models import GeneratedRow, TableDefinition


def is_blank(value: Any) -> bool:
    """A cell is blank when it is missing or whitespace-only once stringified."""
    return value is None or str(value).strip() == ""


def _row_key(values: Iterable[Any]) -> str:
    return json.dumps(list(values), default=str)


def dedupe_rows(rows: Sequence[GeneratedRow]) -> list[GeneratedRow]:
    """Drop rows equal to an earlier row, keeping the first occurrence."""
    return dedupe_on(rows, positions=None)


def dedupe_on(rows: Sequence[GeneratedRow], positions: Sequence[int] | None) -> list[GeneratedRow]:
    """Drop rows whose values at ``positions`` repeat an earlier row.

    Args:
        rows: Rows to filter
        positions: Column positions forming the key, or None for the full row

    Returns:
        New list with the first row of each key
    """
    seen: set[str] = set()
    unique: list[GeneratedRow] = []
    for row in rows:
        if positions is None:
            key = _row_key(row)
        else:
            key = _row_key(row[p] if p < len(row) else None for p in positions)
        if key in seen:
            continue
        seen.add(key)
        unique.append(row)
    return unique


def key_positions(table: TableDefinition) -> list[int] | None:
    """Positions of the dedup key for a derived table.

    Tables with a primary key dedupe on their foreign keys followed by the
    primary key, so relationship tables keep one row per (parents, own key)
    and entity tables one row per key. Tables without a primary key return
    None (full-row dedup).
    """
    pk = [i for i, column in enumerate(table.columns) if column.is_primary_key]
    if not pk:
        return None
    fk = [i for i, column in enumerate(table.columns) if column.is_foreign_key]
    return fk + pk
