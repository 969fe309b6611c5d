"""Index over the regenerated tables of the preceding normalization stage.

Upstream tables are correlated by row position only: a derived table reads
row ``i`` of every upstream column it references. Tables derived from the
same upstream table therefore have to stay index-aligned.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from normform.generation.rows import is_blank
from normform.naming.resolver import normalize_name, split_reference, tables_match
from normform.schema.models import ColumnMapping, GeneratedRow


@dataclass
class UpstreamTable:
    """A saved table of the previous stage together with its generated rows."""

    name: str
    columns: list[str]
    rows: list[GeneratedRow]
    column_index: dict[str, int] = field(init=False, default_factory=dict)
    normalized_index: dict[str, int] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        for position, column in enumerate(self.columns):
            self.column_index.setdefault(column, position)
            self.normalized_index.setdefault(normalize_name(column), position)

    def position_of(self, column: str) -> int | None:
        """Column position by exact name, then by normalized name."""
        position = self.column_index.get(column)
        if position is None:
            position = self.normalized_index.get(normalize_name(column))
        return position

    def values(self, position: int) -> list[Any]:
        """All values of one column, in row order."""
        return [row[position] if position < len(row) else None for row in self.rows]


@dataclass
class UpstreamIndex:
    """Column lookup across all upstream tables.

    ``lookup`` is keyed by exact ``table.column``, normalized
    ``table.column`` and, when only one upstream table has the column, the
    bare column name (exact and normalized).
    """

    tables: list[UpstreamTable]
    lookup: dict[str, list[Any]] = field(default_factory=dict)

    @classmethod
    def build(cls, tables: Sequence[UpstreamTable]) -> UpstreamIndex:
        lookup: dict[str, list[Any]] = {}
        owners: dict[str, int] = {}

        for table in tables:
            seen_in_table: set[str] = set()
            for position, column in enumerate(table.columns):
                values = table.values(position)
                lookup.setdefault(f"{table.name}.{column}", values)
                lookup.setdefault(f"{normalize_name(table.name)}.{normalize_name(column)}", values)

                normalized = normalize_name(column)
                if normalized not in seen_in_table:
                    seen_in_table.add(normalized)
                    owners[normalized] = owners.get(normalized, 0) + 1

        for table in tables:
            for position, column in enumerate(table.columns):
                normalized = normalize_name(column)
                if owners.get(normalized) != 1:
                    continue
                values = table.values(position)
                lookup.setdefault(column, values)
                lookup.setdefault(normalized, values)

        return cls(tables=list(tables), lookup=lookup)

    # -------------------------------------------------------------------------
    # Table resolution
    # -------------------------------------------------------------------------

    def find_table(self, name: str) -> int | None:
        """Position of the upstream table called ``name`` (exact, normalized, fuzzy)."""
        for i, table in enumerate(self.tables):
            if table.name == name:
                return i
        normalized = normalize_name(name)
        for i, table in enumerate(self.tables):
            if normalize_name(table.name) == normalized:
                return i
        for i, table in enumerate(self.tables):
            if tables_match(name, table.name):
                return i
        return None

    def table_with_column(self, column: str) -> int | None:
        """Position of the first upstream table having a bare column name."""
        for i, table in enumerate(self.tables):
            if column in table.column_index:
                return i
        normalized = normalize_name(column)
        for i, table in enumerate(self.tables):
            if normalized in table.normalized_index:
                return i
        return None

    def referenced_table(self, reference: str) -> int | None:
        """Upstream table a source reference points at, if any."""
        table, column = split_reference(reference)
        if table is not None:
            return self.find_table(table)
        return self.table_with_column(column)

    def choose_driver(self, columns: Sequence[ColumnMapping]) -> UpstreamTable | None:
        """Pick the upstream table whose rows drive iteration.

        The table referenced by the most columns wins, ties going to the one
        encountered first. A table referenced by every column always wins.
        Without any resolvable reference the first upstream table is used.
        """
        if not self.tables:
            return None

        counts: dict[int, int] = {}
        for column in columns:
            referenced: list[int] = []
            for reference in column.source_cols:
                position = self.referenced_table(reference)
                if position is not None and position not in referenced:
                    referenced.append(position)
            for position in referenced:
                counts[position] = counts.get(position, 0) + 1

        if not counts:
            return self.tables[0]

        universal = [position for position, count in counts.items() if count == len(columns)]
        if len(universal) == 1:
            return self.tables[universal[0]]

        best = max(counts, key=lambda position: counts[position])
        return self.tables[best]

    # -------------------------------------------------------------------------
    # Value resolution
    # -------------------------------------------------------------------------

    def _candidate_values(self, reference: str) -> Iterator[list[Any]]:
        """Column value sequences for a reference, most specific first."""
        table, column = split_reference(reference)

        exact = self.lookup.get(reference)
        if exact is not None:
            yield exact

        if table is not None:
            normalized_key = f"{normalize_name(table)}.{normalize_name(column)}"
        else:
            normalized_key = normalize_name(column)
        normalized = self.lookup.get(normalized_key)
        if normalized is not None:
            yield normalized

        if table is not None:
            fuzzy_tables = [t for t in self.tables if tables_match(table, t.name)]

            for upstream in fuzzy_tables:
                position = upstream.column_index.get(column)
                if position is not None:
                    yield upstream.values(position)

            for upstream in fuzzy_tables:
                position = upstream.normalized_index.get(normalize_name(column))
                if position is not None:
                    yield upstream.values(position)

            target = normalize_name(column)
            for key, values in self.lookup.items():
                key_table, key_column = split_reference(key)
                if key_table is None:
                    continue
                if tables_match(key_table, table) and normalize_name(key_column) == target:
                    yield values

        for upstream in self.tables:
            position = upstream.position_of(column)
            if position is not None:
                yield upstream.values(position)

    def value_at(self, reference: str, row_index: int) -> Any:
        """Value of a referenced column at a row position.

        Lookup strategies are tried in order and the first non-blank value
        wins; an unresolvable reference yields an empty string.
        """
        for values in self._candidate_values(reference):
            if row_index < len(values):
                value = values[row_index]
                if not is_blank(value):
                    return value
        return ""
