"""Mapping coverage helpers.

Pure projections over table definitions used by the host to show which
source columns have been used and which are still available.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, Field

from normform.naming.resolver import normalize_name
from normform.schema.models import ColumnMapping, MappingType, RawDataset, TableDefinition


class MappingStats(BaseModel):
    """How many raw columns are referenced by at least one table."""

    total: int
    mapped: int
    unmapped: int
    percentage: int  # 0-100, rounded half up
    mapped_columns: list[str] = Field(default_factory=list)
    unmapped_columns: list[str] = Field(default_factory=list)


def get_mapped_columns(tables: Iterable[TableDefinition]) -> set[str]:
    """All source references used by any column of any table."""
    mapped: set[str] = set()
    for table in tables:
        for column in table.columns:
            mapped.update(column.source_cols)
    return mapped


def is_column_mapped(column_name: str, mapped: Iterable[str]) -> bool:
    """Whether a column name appears among mapped references (normalized)."""
    normalized = normalize_name(column_name)
    return any(normalize_name(reference) == normalized for reference in mapped)


def get_mapping_stats(tables: Iterable[TableDefinition], raw_columns: Sequence[str]) -> MappingStats:
    """Summarize raw column coverage for a set of tables."""
    mapped_refs = {normalize_name(reference) for reference in get_mapped_columns(tables)}

    mapped_columns = [name for name in raw_columns if normalize_name(name) in mapped_refs]
    unmapped_columns = [name for name in raw_columns if normalize_name(name) not in mapped_refs]

    total = len(raw_columns)
    percentage = math.floor(len(mapped_columns) * 100 / total + 0.5) if total else 0

    return MappingStats(
        total=total,
        mapped=len(mapped_columns),
        unmapped=len(unmapped_columns),
        percentage=percentage,
        mapped_columns=mapped_columns,
        unmapped_columns=unmapped_columns,
    )


def get_available_source_columns(
    raw_data: RawDataset,
    previous_form_tables: Sequence[TableDefinition] | None = None,
) -> list[str]:
    """Source references a new column may pick from.

    Stage 1 offers the raw column names; later stages offer ``table.column``
    for every column of every saved upstream table.
    """
    if not previous_form_tables:
        return list(raw_data.columns)

    return [
        f"{table.name}.{column.name}"
        for table in previous_form_tables
        if table.saved
        for column in table.columns
    ]


def get_direct_mapped_columns(table: TableDefinition) -> list[str]:
    """Sources already taken by direct mappings in a table.

    Consolidate and metadata columns may reuse the same sources, so only
    direct mappings count.
    """
    used: list[str] = []
    for column in table.columns:
        if column.mapping_type is MappingType.DIRECT:
            for source in column.source_cols:
                if source not in used:
                    used.append(source)
    return used


def describe_mapping(column: ColumnMapping) -> str:
    """Human-readable summary of a column's mapping."""
    if column.mapping_type is None or not column.source_cols:
        return "No mapping defined"

    if column.mapping_type is MappingType.DIRECT:
        return f"← maps to {column.source_cols[0]}"
    if column.mapping_type is MappingType.CONSOLIDATE:
        return f"← consolidates from {', '.join(column.source_cols)}"
    return f"← uses names of {', '.join(column.source_cols)}"
