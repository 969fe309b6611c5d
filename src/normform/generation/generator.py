"""Preview row generation for user-authored tables.

Stage 1 tables read the raw dataset directly; later stages read the saved
tables of the preceding stage, which are themselves regenerated on every
call (down to the raw data if needed). Nothing is cached between calls, so
an edit to an upstream mapping is always reflected downstream.

Usage:
    from normform.generation import generate_table_data

    rows = generate_table_data(table, dataset.raw_data)
    rows = generate_table_data(table, dataset.raw_data, first_form_tables)
    rows = generate_table_data(table, dataset.raw_data, second_form_tables, first_form_tables)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from normform.core.logging import get_logger
from normform.generation.rows import dedupe_on, dedupe_rows, is_blank, key_positions
from normform.generation.upstream import UpstreamIndex, UpstreamTable
from normform.schema.models import (
    ColumnMapping,
    GeneratedRow,
    MappingType,
    RawDataset,
    TableDefinition,
)

logger = get_logger(__name__)


def generate_table_data(
    table: TableDefinition,
    raw_data: RawDataset,
    previous_form_tables: Sequence[TableDefinition] | None = None,
    previous_previous_form_tables: Sequence[TableDefinition] | None = None,
) -> list[GeneratedRow]:
    """Generate the rows a table would contain.

    Args:
        table: Table definition with column mappings
        raw_data: Unnormalized source dataset
        previous_form_tables: Tables of the preceding stage. When non-empty,
            rows are derived from them instead of the raw data.
        previous_previous_form_tables: Tables two stages back, used to
            regenerate the preceding stage's rows

    Returns:
        Generated rows, positionally aligned with ``table.columns``. Empty
        when the table has no columns or any column lacks a mapping.
    """
    if not table.is_previewable:
        logger.debug("table_preview_skipped", table=table.name, columns=len(table.columns))
        return []

    if previous_form_tables:
        rows = generate_from_previous_form(
            table, raw_data, previous_form_tables, previous_previous_form_tables
        )
        source = "previous_form"
    else:
        rows = generate_from_raw(table, raw_data)
        source = "raw"

    logger.debug("table_data_generated", table=table.name, source=source, rows=len(rows))
    return rows


# =============================================================================
# Stage 1: raw data
# =============================================================================


def _raw_value(row: Sequence[Any], index: dict[str, int], column: str) -> Any:
    position = index.get(column)
    if position is None or position >= len(row):
        return ""
    value = row[position]
    return "" if value is None else value


def _raw_cell(
    column: ColumnMapping,
    row: Sequence[Any],
    index: dict[str, int],
    master: Sequence[str],
    position: int,
) -> Any:
    mapping_type = column.mapping_type
    if mapping_type is MappingType.DIRECT:
        if not column.source_cols:
            return ""
        return _raw_value(row, index, column.source_cols[0])
    if mapping_type is MappingType.CONSOLIDATE:
        if position >= len(column.source_cols):
            return ""
        return _raw_value(row, index, column.source_cols[position])
    if mapping_type is MappingType.METADATA:
        return master[position]
    return ""


def generate_from_raw(table: TableDefinition, raw_data: RawDataset) -> list[GeneratedRow]:
    """Generate rows from the raw dataset.

    With a consolidate column, each raw row is unpivoted: the first
    consolidate column's sources form the master list, and every non-blank
    master cell yields one output row. Consolidate columns read their own
    source at the same master position; metadata columns emit the master
    source column's name. Without one, each raw row maps to one output row.

    Identical output rows are collapsed, keeping the first.
    """
    index = raw_data.column_index()
    consolidated = [
        column
        for column in table.columns
        if column.mapping_type is MappingType.CONSOLIDATE and column.source_cols
    ]

    rows: list[GeneratedRow] = []

    if consolidated:
        master = consolidated[0].source_cols
        # Positions stay relative to the full master list so every
        # consolidate column reads the source aligned with it
        resolved = [
            (position, index[name]) for position, name in enumerate(master) if name in index
        ]

        for raw_row in raw_data.rows:
            for position, raw_position in resolved:
                cell = raw_row[raw_position] if raw_position < len(raw_row) else None
                if is_blank(cell):
                    continue
                rows.append(
                    [
                        _raw_cell(column, raw_row, index, master, position)
                        for column in table.columns
                    ]
                )
    else:
        for raw_row in raw_data.rows:
            rows.append(
                [
                    _raw_value(raw_row, index, column.source_cols[0])
                    if column.mapping_type is MappingType.DIRECT and column.source_cols
                    else ""
                    for column in table.columns
                ]
            )

    return dedupe_rows(rows)


# =============================================================================
# Stage >= 2: previous stage tables
# =============================================================================


def build_upstream_index(
    raw_data: RawDataset,
    previous_form_tables: Sequence[TableDefinition],
    previous_previous_form_tables: Sequence[TableDefinition] | None = None,
) -> UpstreamIndex:
    """Regenerate every saved upstream table and index its columns."""
    upstream: list[UpstreamTable] = []
    for table in previous_form_tables:
        if not table.saved:
            continue
        rows = generate_table_data(table, raw_data, previous_previous_form_tables)
        upstream.append(UpstreamTable(name=table.name, columns=table.column_names, rows=rows))
    return UpstreamIndex.build(upstream)


def _derived_cell(index: UpstreamIndex, column: ColumnMapping, row_index: int) -> Any:
    mapping_type = column.mapping_type
    if mapping_type is MappingType.DIRECT:
        references = column.source_cols[:1]
    elif mapping_type in (MappingType.CONSOLIDATE, MappingType.METADATA):
        references = column.source_cols
    else:
        return ""

    for reference in references:
        value = index.value_at(reference, row_index)
        if not is_blank(value):
            return value
    return ""


def generate_from_previous_form(
    table: TableDefinition,
    raw_data: RawDataset,
    previous_form_tables: Sequence[TableDefinition],
    previous_previous_form_tables: Sequence[TableDefinition] | None = None,
) -> list[GeneratedRow]:
    """Generate rows from the saved tables of the preceding stage.

    Iterates the rows of the driver table (the upstream table most of this
    table's columns reference) and reads every column at the same row
    position. Rows are deduplicated on (foreign keys, primary key) when the
    table has a primary key, otherwise on the full row.
    """
    index = build_upstream_index(raw_data, previous_form_tables, previous_previous_form_tables)
    driver = index.choose_driver(table.columns)
    if driver is None:
        return []

    rows = [
        [_derived_cell(index, column, row_index) for column in table.columns]
        for row_index in range(len(driver.rows))
    ]

    return dedupe_on(rows, key_positions(table))
