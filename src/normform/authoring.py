"""Qualification of reference-solution source references.

Dataset authors often write 2NF/3NF solutions with bare column names as
sources (``"PILOT_NAME"``). Learners at those stages pick qualified
references into their previous-stage tables (``"PILOT.PILOT_NAME"``).
``qualify_solution_sources`` rewrites a dataset's later-stage solutions so
their sources point at the preceding stage's solution tables:

- a column whose name matches an upstream column takes every upstream
  ``table.column`` with that name as its sources;
- otherwise each bare source is replaced by the upstream references whose
  token set (column name, its sources, and their own upstream tokens)
  contains it;
- consolidate/metadata columns that end up with qualified sources become
  direct mappings, since unpivoting only happens against raw data.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from normform.core.logging import get_logger
from normform.naming.resolver import normalize_name, split_reference
from normform.schema.models import (
    NORMAL_FORMS,
    ColumnMapping,
    Dataset,
    FormSolution,
    MappingType,
    NormalForm,
    SolutionTable,
)

logger = get_logger(__name__)


@dataclass
class _FormIndex:
    """Lookup of one stage's solution columns by name and by token."""

    column_tokens: dict[tuple[str, str], set[str]] = field(default_factory=dict)
    refs_by_name: dict[str, list[str]] = field(default_factory=dict)
    refs_by_token: dict[str, list[str]] = field(default_factory=dict)


def _add_ref(refs: dict[str, list[str]], key: str, ref: str) -> None:
    normalized = normalize_name(key)
    if not normalized:
        return
    bucket = refs.setdefault(normalized, [])
    if ref not in bucket:
        bucket.append(ref)


def _source_tokens(source: str, previous: _FormIndex | None) -> set[str]:
    tokens = {normalize_name(source)}
    table, column = split_reference(source)
    if table is not None:
        tokens.add(normalize_name(column))
        if previous is not None:
            tokens |= previous.column_tokens.get((table, column), set())
    return tokens


def _build_index(tables: Sequence[SolutionTable], previous: _FormIndex | None) -> _FormIndex:
    index = _FormIndex()
    for table in tables:
        for column in table.columns:
            tokens = {normalize_name(column.name)}
            for source in column.source_cols:
                tokens |= _source_tokens(source, previous)
            tokens.discard("")
            index.column_tokens[(table.name, column.name)] = tokens

            ref = f"{table.name}.{column.name}"
            _add_ref(index.refs_by_name, column.name, ref)
            for token in tokens:
                _add_ref(index.refs_by_token, token, ref)
    return index


def _qualified_sources(column: ColumnMapping, previous: _FormIndex) -> list[str] | None:
    """New sources for a column, or None when they stay as they are."""
    original = list(column.source_cols)

    by_name = previous.refs_by_name.get(normalize_name(column.name), [])
    if by_name:
        return list(by_name) if by_name != original else None

    sources: list[str] = []
    replaced = False
    for source in original or [column.name]:
        if "." in source:
            if source not in sources:
                sources.append(source)
            continue
        matches = previous.refs_by_token.get(normalize_name(source), [])
        if matches:
            replaced = True
        for candidate in matches or [source]:
            if candidate not in sources:
                sources.append(candidate)

    if replaced and sources != original:
        return sources
    return None


def _qualify_column(column: ColumnMapping, previous: _FormIndex) -> ColumnMapping | None:
    """Rewritten column, or None when nothing changed."""
    update: dict[str, object] = {}

    sources = _qualified_sources(column, previous)
    if sources is not None:
        update["source_cols"] = sources
    else:
        sources = column.source_cols

    if column.mapping_type in (MappingType.CONSOLIDATE, MappingType.METADATA) and any(
        "." in source for source in sources
    ):
        update["mapping_type"] = MappingType.DIRECT

    if not update:
        return None
    return column.model_copy(update=update)


def _qualify_tables(
    tables: Sequence[SolutionTable], previous: _FormIndex
) -> tuple[list[SolutionTable], int]:
    result: list[SolutionTable] = []
    changes = 0
    for table in tables:
        columns: list[ColumnMapping] = []
        table_changed = False
        for column in table.columns:
            rewritten = _qualify_column(column, previous)
            if rewritten is not None:
                table_changed = True
                changes += 1
            columns.append(rewritten or column)
        result.append(table.model_copy(update={"columns": columns}) if table_changed else table)
    return result, changes


def qualify_solution_sources(dataset: Dataset) -> tuple[Dataset, bool]:
    """Rewrite 2NF/3NF solution sources as qualified upstream references.

    Args:
        dataset: Dataset whose solutions should be rewritten

    Returns:
        (dataset, changed): a new dataset when anything changed, otherwise
        the input dataset unchanged
    """
    solutions: dict[NormalForm, FormSolution] = dict(dataset.solutions)
    previous: _FormIndex | None = None
    total_changes = 0

    for position, form in enumerate(NORMAL_FORMS):
        solution = solutions.get(form)
        if solution is None:
            continue

        tables = list(solution.tables)
        if position > 0 and previous is not None:
            tables, changes = _qualify_tables(tables, previous)
            if changes:
                total_changes += changes
                solutions[form] = solution.model_copy(update={"tables": tables})

        previous = _build_index(tables, previous)

    logger.debug("solution_sources_qualified", dataset=dataset.id, columns=total_changes)

    if not total_changes:
        return dataset, False
    return dataset.model_copy(update={"solutions": solutions}), True
