"""Structural comparison of a user schema with a reference solution.

Only names, key roles and mappings are compared; row contents are never
generated or inspected here. Every mismatch is collected into the report,
nothing is raised.

Usage:
    from normform.validation import validate_solution

    report = validate_solution(user_tables, dataset.solutions[NormalForm.SECOND].tables)
    if not report.is_valid:
        for error in report.errors:
            print(error)
"""

from __future__ import annotations

from collections.abc import Sequence

from normform.core.logging import get_logger
from normform.naming.resolver import (
    find_matching_column,
    normalize_name,
    source_cols_match,
    tables_match,
)
from normform.schema.models import (
    ColumnMapping,
    ColumnRole,
    SolutionColumn,
    SolutionTable,
    TableDefinition,
)
from normform.validation.models import (
    TableValidation,
    TableValidationDetail,
    ValidationReport,
)

logger = get_logger(__name__)

DEFAULT_MISSING_TABLE_TOLERANCE = 2

_ROLE_LABELS = {
    ColumnRole.PK: "a Primary Key (PK)",
    ColumnRole.FK: "a Foreign Key (FK)",
}


def validate_column_mapping(user_column: ColumnMapping, solution_column: SolutionColumn) -> str | None:
    """Compare a user column's mapping with the solution's.

    The mapping kind must be identical. Sources are checked existentially:
    one user source matching one solution source is enough, because a
    solution may list several acceptable upstream sources for a column.

    Returns:
        Error message, or None when the mapping is acceptable
    """
    expected_type = solution_column.mapping_type
    expected_sources = solution_column.source_cols
    if expected_type is None or not expected_sources:
        return None

    if user_column.mapping_type is not expected_type:
        got = user_column.mapping_type.value if user_column.mapping_type else "none"
        return f"{user_column.name} should use {expected_type.value} mapping (got {got})"

    if not user_column.source_cols:
        return f"{user_column.name} is missing source column mapping"

    if len(expected_sources) == 1:
        expected = expected_sources[0]
        if not any(source_cols_match(source, expected) for source in user_column.source_cols):
            return f"{user_column.name} should map to source column: {expected}"
        return None

    if not any(
        source_cols_match(source, expected)
        for source in user_column.source_cols
        for expected in expected_sources
    ):
        return f"{user_column.name} should map to one of: {', '.join(expected_sources)}"

    return None


def validate_table(user_table: TableDefinition, solution_table: SolutionTable) -> TableValidation:
    """Compare the columns of a user table with one solution table."""
    errors: list[str] = []
    warnings: list[str] = []

    for solution_column in solution_table.columns:
        user_column = find_matching_column(solution_column.name, user_table.columns)
        if user_column is None:
            errors.append(f"Missing column: {solution_column.name}")
            continue

        # Attribute columns accept any user role
        expected_role = solution_column.type
        if expected_role in _ROLE_LABELS and user_column.type is not expected_role:
            errors.append(f"Column {solution_column.name} should be {_ROLE_LABELS[expected_role]}")

        mapping_error = validate_column_mapping(user_column, solution_column)
        if mapping_error:
            errors.append(mapping_error)

    for user_column in user_table.columns:
        if find_matching_column(user_column.name, solution_table.columns) is None:
            warnings.append(
                f"Extra column: {user_column.name} (not in solution, but may be acceptable)"
            )

    solution_keys = [column for column in solution_table.columns if column.is_primary_key]
    user_keys = [column for column in user_table.columns if column.is_primary_key]

    expected_keys: set[str] = set()
    for column in solution_keys:
        matched = find_matching_column(column.name, user_table.columns)
        expected_keys.add(normalize_name(matched.name if matched else column.name))
    actual_keys = {normalize_name(column.name) for column in user_keys}

    if expected_keys != actual_keys:
        expected_names = ", ".join(column.name for column in solution_keys)
        actual_names = ", ".join(column.name for column in user_keys)
        errors.append(
            f"Primary keys don't match. Expected: {expected_names}, Got: {actual_names}"
        )

    return TableValidation(errors=errors, warnings=warnings)


def _best_match(
    user_table: TableDefinition, candidates: Sequence[SolutionTable]
) -> tuple[SolutionTable, TableValidation]:
    """Candidate with the fewest errors, earliest first on ties."""
    best_table = candidates[0]
    best = validate_table(user_table, best_table)
    for candidate in candidates[1:]:
        validation = validate_table(user_table, candidate)
        if validation.error_count < best.error_count:
            best_table, best = candidate, validation
    return best_table, best


def _dedupe(messages: list[str]) -> list[str]:
    return list(dict.fromkeys(messages))


def validate_solution(
    user_tables: Sequence[TableDefinition],
    solution_tables: Sequence[SolutionTable],
    *,
    missing_table_tolerance: int = DEFAULT_MISSING_TABLE_TOLERANCE,
) -> ValidationReport:
    """Validate a user's tables against the reference solution of a stage.

    Args:
        user_tables: Tables authored by the learner
        solution_tables: Reference solution tables
        missing_table_tolerance: Column errors a name-matched user table may
            have while still counting as present for a solution table

    Returns:
        ValidationReport with deduplicated errors/warnings and per-table details
    """
    if not user_tables:
        logger.info("solution_validated", is_valid=False, errors=1, warnings=0)
        return ValidationReport(is_valid=False, errors=["No tables provided"])

    is_valid = True
    errors: list[str] = []
    warnings: list[str] = []
    details: list[TableValidationDetail] = []

    for user_table in user_tables:
        candidates = [
            solution_table
            for solution_table in solution_tables
            if tables_match(user_table.name, solution_table.name)
        ]

        if not candidates:
            is_valid = False
            errors.append(f'Table "{user_table.name}" doesn\'t match any solution table')
            details.append(
                TableValidationDetail(
                    table_name=user_table.name,
                    is_valid=False,
                    errors=[
                        f'Table "{user_table.name}" doesn\'t match any expected table structure'
                    ],
                )
            )
            continue

        matched_table, validation = _best_match(user_table, candidates)
        if validation.errors:
            is_valid = False

        errors.extend(f"{user_table.name}: {error}" for error in validation.errors)
        warnings.extend(f"{user_table.name}: {warning}" for warning in validation.warnings)
        details.append(
            TableValidationDetail(
                table_name=user_table.name,
                is_valid=not validation.errors,
                matched_solution_table=matched_table.name,
                errors=validation.errors,
                warnings=validation.warnings,
            )
        )

    for solution_table in solution_tables:
        found = any(
            tables_match(user_table.name, solution_table.name)
            and validate_table(user_table, solution_table).error_count <= missing_table_tolerance
            for user_table in user_tables
        )
        if not found:
            is_valid = False
            errors.append(f"Missing table: {solution_table.name}")

    report = ValidationReport(
        is_valid=is_valid,
        errors=_dedupe(errors),
        warnings=_dedupe(warnings),
        table_details=details,
    )

    logger.info(
        "solution_validated",
        is_valid=report.is_valid,
        errors=len(report.errors),
        warnings=len(report.warnings),
        user_tables=len(user_tables),
        solution_tables=len(solution_tables),
    )
    return report
